import random

import numpy as np
import torch
from loguru import logger

def set_seed(seed=42):
    '''Seed python, numpy and torch so runs are reproducible'''
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
    logger.debug(f'seeded random, numpy and torch with {seed}')
