"""
VALUTA: financial data provider layer.

Exchange rates, security prices and company logos from several third-party
APIs behind one response contract, with configuration-driven provider
selection and fallback.
"""

__version__ = "1.0.0"
