import logging

from stagehub.config import config

logging.basicConfig(
    format='%(asctime)s [%(name)s] %(levelname)s: %(message)s',
    level=logging.INFO,
)
if config.debug:
    logging.getLogger('stagehub.client').setLevel(logging.DEBUG)
    logging.getLogger('stagehub.fetcher').setLevel(logging.DEBUG)
