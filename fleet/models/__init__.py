from .core import Truck
