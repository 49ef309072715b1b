import sys

from review_pipeline.cli import main

sys.exit(main())
