import sys

from valuta.main import main

sys.exit(main())
