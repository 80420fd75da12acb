import sys

from layerkit.cli._dispatcher import main

sys.exit(main())
