from .assignment import AssignmentSerializer, AssignmentCreateSerializer
from .discharge import DischargeSerializer, MarkerReadingSerializer, RecordDischargeSerializer
