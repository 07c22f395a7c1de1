"""Library and CLI to normalize QMK/ZMK firmware descriptors into a spatial keyboard model."""

import logging

logging.basicConfig(format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)
