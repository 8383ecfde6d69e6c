from .assignment import Assignment
from .discharge import Discharge
