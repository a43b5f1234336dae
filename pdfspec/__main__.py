import sys

from pdfspec.cli import main

sys.exit(main())
