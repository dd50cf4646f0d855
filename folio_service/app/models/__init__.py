# Importing every model module registers the whole mapper graph on Base.metadata
from . import hospitality, financials, billing
