"""Allow ``python -m bwcollector``."""
from bwcollector.main import main

main()
