# backend/pestscan/models/alert_model.py
"""Models for report lookups and the alert records raised from them."""

from typing import Optional

from pydantic import BaseModel, Field

from ..constants import ALERT_PRIORITY, ALERT_RECORD_TYPE, ALERT_TYPE_PEST_DETECTION
from ..enums import AlertSeverity


class ReportSummary(BaseModel):
    """Fields read from an analysis report when deciding whether to alert."""

    infestation_level: Optional[str] = None
    farm_id: Optional[str] = None


class AlertRecord(BaseModel):
    """Row inserted into the alerts table."""

    farm_id: Optional[str]
    alert_type: str = ALERT_TYPE_PEST_DETECTION
    severity: AlertSeverity
    message: str
    type: str = ALERT_RECORD_TYPE
    priority: int = ALERT_PRIORITY
    is_read: bool = False


class AlertOutcome(BaseModel):
    """What the alert step did for one report."""

    report_id: str
    alert_created: bool = False
    severity: Optional[AlertSeverity] = None
    sms_triggered: bool = Field(
        default=False,
        description="True when a HIGH alert handed off to the SMS workflow",
    )
