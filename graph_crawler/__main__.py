import sys

from graph_crawler.main import main


sys.exit(main())
