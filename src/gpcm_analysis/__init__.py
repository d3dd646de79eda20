"""
GPCM item analysis: item response functions, priors, and form linking.
"""

import logging
import sys

# Console handler shared by every module logger (logging.getLogger(__name__))
_handler = logging.StreamHandler(sys.stdout)
_handler.setLevel(logging.DEBUG)
_handler.setFormatter(
    logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
)

_package_logger = logging.getLogger(__name__)
_package_logger.setLevel(logging.INFO)
_package_logger.addHandler(_handler)

# numba logs every compilation pass at DEBUG
logging.getLogger("numba").setLevel(logging.WARNING)
