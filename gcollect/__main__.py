import sys

from gcollect.main import main

sys.exit(main())
