# backend/pestscan/services/capture_pipeline/alert_service.py
"""
Capture Pipeline Alert Service

Looks up a freshly created analysis report and, for HIGH or MEDIUM
infestations, inserts a farm alert. HIGH alerts are picked up by the
hosted SMS notification workflow.

Alerting is best effort: every failure is logged and swallowed so a
detection that already succeeded is never reported as failed.
"""

import asyncio
from typing import Optional

from ...constants import (
    ALERT_MESSAGE_TEMPLATE,
    ALERT_SEVERITY_BY_LEVEL,
    ALERTS_TABLE,
    ANALYSIS_REPORTS_TABLE,
)
from ...enums import LogEmoji, LoggerName, LogSource, ReportInfestationLevel, ScanType
from ...exceptions import AlertError
from ...models.alert_model import AlertOutcome, AlertRecord, ReportSummary
from ..logger import get_service_logger
from .interfaces import AlertRaiser
from .supabase_client import HostedBackendClient, error_message

logger = get_service_logger(
    LoggerName.ALERT_SERVICE, LogSource.BACKEND, default_emoji=LogEmoji.ALERT
)


def build_alert_message(level: ReportInfestationLevel, scan_type: ScanType) -> str:
    """Alert text shown to the farmer, e.g. "A HIGH infestation level ..."."""
    return ALERT_MESSAGE_TEMPLATE.format(
        level=level.value, scan_label=ScanType(scan_type).label
    )


def build_alert_record(
    report: ReportSummary, scan_type: ScanType
) -> Optional[AlertRecord]:
    """
    Alert row for a report, or None when its level does not warrant one.
    """
    try:
        level = ReportInfestationLevel(report.infestation_level)
    except ValueError:
        return None

    severity = ALERT_SEVERITY_BY_LEVEL.get(level)
    if severity is None:
        return None

    return AlertRecord(
        farm_id=report.farm_id,
        severity=severity,
        message=build_alert_message(level, scan_type),
    )


class SupabaseAlertService(AlertRaiser):
    """Alert creation over the hosted backend's REST API."""

    def __init__(self, client: HostedBackendClient):
        self.client = client

    def _fetch_report(self, report_id: str) -> ReportSummary:
        response = self.client.request(
            "GET",
            f"rest/v1/{ANALYSIS_REPORTS_TABLE}",
            params={"id": f"eq.{report_id}", "select": "infestation_level,farm_id"},
            headers={"Accept": "application/vnd.pgrst.object+json"},
        )
        if not response.ok:
            raise AlertError(f"Report lookup failed: {error_message(response)}")
        return ReportSummary.model_validate(response.json())

    def _insert_alert(self, record: AlertRecord) -> None:
        response = self.client.request(
            "POST",
            f"rest/v1/{ALERTS_TABLE}",
            json=record.model_dump(mode="json"),
            headers={"Prefer": "return=minimal"},
        )
        if not response.ok:
            raise AlertError(f"Alert insert failed: {error_message(response)}")

    def _raise_sync(self, report_id: str, scan_type: ScanType) -> AlertOutcome:
        outcome = AlertOutcome(report_id=report_id)

        report = self._fetch_report(report_id)
        record = build_alert_record(report, scan_type)
        if record is None:
            logger.debug(
                "No alert needed",
                extra_context={
                    "report_id": report_id,
                    "infestation_level": report.infestation_level,
                },
            )
            return outcome

        self._insert_alert(record)
        outcome.alert_created = True
        outcome.severity = record.severity
        logger.info(
            f"Created {record.severity.value} pest alert",
            extra_context={"report_id": report_id, "farm_id": report.farm_id},
        )

        if report.infestation_level == ReportInfestationLevel.HIGH.value:
            outcome.sms_triggered = True
            logger.info(
                "SMS notification triggered via n8n workflow",
                emoji=LogEmoji.NOTIFICATION,
                extra_context={"report_id": report_id},
            )

        return outcome

    async def maybe_raise_alert(self, report_id: str, scan_type: ScanType) -> AlertOutcome:
        """
        Create an alert for a HIGH or MEDIUM report.

        Args:
            report_id: Report returned by the detection function
            scan_type: Scan type, used for the alert message

        Returns:
            AlertOutcome describing what was done; never raises
        """
        try:
            return await asyncio.to_thread(self._raise_sync, report_id, scan_type)
        except Exception as e:
            logger.error(
                f"Error creating alert for report {report_id}",
                exception=e,
                extra_context={"report_id": report_id},
            )
            return AlertOutcome(report_id=report_id)
