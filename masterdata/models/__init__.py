from .material import MaterialCategory, Unit, Material
from .supplier import Supplier, Transporter
from .buyer import Buyer
