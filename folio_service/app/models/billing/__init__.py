from .folios import Folio
from .folio_items import FolioItem
from .payments import Payment
