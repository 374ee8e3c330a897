"""Parent association portal - event targeting and notifications"""

__version__ = "1.0.0"
