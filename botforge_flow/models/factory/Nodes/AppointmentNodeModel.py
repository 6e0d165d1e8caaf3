from typing import Optional

from botforge_flow.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class AppointmentNodeModel(BaseNodeModel):
    variable: str = 'appointment_time'
    duration: Optional[int] = None
    calendarUrl: Optional[str] = None
