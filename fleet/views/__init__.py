from .truck import TruckViewSet
