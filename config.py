import logging
import os
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

DB_PATH = os.getenv(
    'RECALL_DB_PATH',
    os.path.join(os.path.dirname(os.path.abspath(__file__)), 'recall.db'),
)

# Name of the scheduling algorithm handlers resolve through scheduling.srs.get_scheduler
SCHEDULER_ALGORITHM = os.getenv('SCHEDULER_ALGORITHM', 'sm2')

# Quota given to users whose settings row does not exist yet
DEFAULT_NEW_CARDS_PER_DAY = int(os.getenv('DEFAULT_NEW_CARDS_PER_DAY', '20'))

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=LOG_LEVEL
)
