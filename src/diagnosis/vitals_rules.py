"""
Vital-sign red-flag rules.

Each rule is checked independently and the alerts come back in rule order:
fever, oxygen saturation, hypotension, hypertensive crisis, heart rate.
Thresholds are strict, so a reading exactly on a threshold never fires.
Missing readings are skipped, never treated as zero.
"""

import structlog

import config
from structure.schema import RedFlagAlert, VitalsInput

logger = structlog.get_logger()

HIGH_FEVER_ACTION = "Temperature >103°F - Start cooling measures, check for sepsis, consider blood cultures"
LOW_OXYGEN_ACTION = "SpO2 <90% - START OXYGEN IMMEDIATELY. Monitor continuously. Prepare for referral."
HYPOTENSION_ACTION = "Low BP - Check for shock. Start IV fluids. Monitor urine output. Consider sepsis."
HYPERTENSIVE_CRISIS_ACTION = "Very high BP - Risk of stroke/MI. Antihypertensive needed. Refer urgently."
ABNORMAL_PULSE_ACTION = (
    "Abnormal heart rate ({pulse} bpm) - Check for cardiac issues, dehydration, or medication effects"
)


def _format_reading(value):
    return f"{value:g}" if isinstance(value, float) else str(value)


def evaluate_vitals(vitals):
    """
    Return the RedFlagAlerts triggered by a set of vital signs.

    Args:
        vitals: VitalsInput, a mapping of readings, or None

    Returns:
        List of RedFlagAlert in fixed rule order (possibly empty)
    """
    if vitals is None:
        vitals = VitalsInput()
    elif not isinstance(vitals, VitalsInput):
        vitals = VitalsInput.from_dict(vitals)

    alerts = []

    if vitals.temperature is not None and vitals.temperature > config.HIGH_FEVER_F:
        alerts.append(RedFlagAlert("High Fever", "critical", HIGH_FEVER_ACTION))

    if vitals.spo2 is not None and vitals.spo2 < config.LOW_SPO2:
        alerts.append(RedFlagAlert("Low Oxygen Saturation", "critical", LOW_OXYGEN_ACTION))

    if vitals.bp_systolic is not None and vitals.bp_systolic < config.LOW_SYSTOLIC:
        alerts.append(RedFlagAlert("Hypotension", "critical", HYPOTENSION_ACTION))

    if vitals.bp_systolic is not None and vitals.bp_systolic > config.HIGH_SYSTOLIC:
        alerts.append(RedFlagAlert("Hypertensive Crisis", "high", HYPERTENSIVE_CRISIS_ACTION))

    pulse = vitals.pulse
    if pulse is not None and (pulse > config.TACHYCARDIA_PULSE or pulse < config.BRADYCARDIA_PULSE):
        condition = "Tachycardia" if pulse > config.TACHYCARDIA_PULSE else "Bradycardia"
        alerts.append(RedFlagAlert(
            condition,
            "high",
            ABNORMAL_PULSE_ACTION.format(pulse=_format_reading(pulse)),
        ))

    for alert in alerts:
        logger.info("vital_sign_alert", condition=alert.condition, severity=alert.severity)

    return alerts
