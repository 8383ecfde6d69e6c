from .truck import TruckSerializer, TruckStateSerializer
