import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # How many bits in a binary value
    BINARY_LENGTH = int(os.environ.get('BINARY_LENGTH', '8'))
    # Bases offered for the numeric side, comma separated
    BASE_LIST = os.environ.get('BASE_LIST', '8,10,16')
    # Game over once this many challenges are on screen (levels may override)
    MAX_ON_SCREEN = int(os.environ.get('MAX_ON_SCREEN', '9'))
    # Interval between two game ticks (ms)
    TICK_MS = int(os.environ.get('TICK_MS', '100'))
    # Optional: fixed seed for reproducible games. Unset uses system randomness.
    RANDOM_SEED = int(os.environ['RANDOM_SEED']) if os.environ.get('RANDOM_SEED') else None
    # Optional: heartbeat interval for tick loop logs (sec). 0 disables.
    TICK_HEARTBEAT_SEC = int(os.environ.get('TICK_HEARTBEAT_SEC', '0'))
    # Drop games nobody has touched for this long (sec)
    SESSION_IDLE_SEC = int(os.environ.get('SESSION_IDLE_SEC', '1800'))
    # Finished games stay readable this long after their last request (sec)
    SESSION_FINISHED_SEC = int(os.environ.get('SESSION_FINISHED_SEC', '120'))
    # Level definitions: points per solve, spawn delay (sec), resolved count to advance
    LEVELS = {
        1: {'points': 1, 'delay': 15.0, 'threshold': 10},
        2: {'points': 2, 'delay': 10.0, 'threshold': 20},
        3: {'points': 4, 'delay': 8.0, 'threshold': 50},
        4: {'points': 8, 'delay': 6.0, 'threshold': 80},
        5: {'points': 16, 'delay': 5.0, 'threshold': 100},
        6: {'points': 32, 'delay': 4.0, 'threshold': 120},
        7: {'points': 64, 'delay': 3.0, 'threshold': 140},
        8: {'points': 128, 'delay': 2.0, 'threshold': 200},
        9: {'points': 128, 'delay': 1.0, 'threshold': 900},
    }
