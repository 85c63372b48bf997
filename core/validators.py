"""
Settings Guard - Validation Layer

This module validates press settings before the engine accepts them and
defines the two failure types the engine can raise.

Philosophy:
- Hard failures: settings that make the engine meaningless → Reject
- Soft warnings: unusual but workable settings → Accept with warnings
- Business events (temperature low, high vibration) are NOT errors;
  they are reported as alerts and never raised.

Failure types:
- ConfigurationError: rejected settings; previous configuration is kept
- InvariantViolation: internal-consistency fault (clamp bounds, ring
  capacity). Fatal, never caught by the engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any
import logging
import math

from .settings import PressSettings, DEFAULT_PHASE_DURATIONS

logger = logging.getLogger(__name__)

# Scalar settings checked for NaN/inf before any other rule runs
NUMERIC_SETTINGS = (
    "target_temp",
    "target_pressure",
    "tolerance_pct",
    "vibration_safe",
    "vibration_warning",
    "vibration_critical",
    "vibration_critical_probability",
    "vibration_warning_probability",
    "history_capacity",
    "alert_capacity",
    "dedup_window_s",
    "tick_interval_s",
    "initial_total_cycles",
    "initial_reject_count",
    "initial_last_cycle_time",
)


def _is_finite(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    ERROR = "error"        # Unusable setting - must reject
    WARNING = "warning"    # Unusual - accept with warning
    INFO = "info"          # Informational note


@dataclass
class ValidationIssue:
    """
    A single validation issue found in the settings.

    Attributes:
        severity: How serious is this issue
        rule_name: Identifier for the rule that was violated
        message: Human-readable description
        setting_name: Which setting has the issue
        actual_value: The problematic value
        expected_range: What the value should be
    """
    severity: ValidationSeverity
    rule_name: str
    message: str
    setting_name: Optional[str] = None
    actual_value: Optional[float] = None
    expected_range: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "severity": self.severity.value,
            "rule_name": self.rule_name,
            "message": self.message,
            "setting_name": self.setting_name,
            "actual_value": self.actual_value,
            "expected_range": self.expected_range,
        }


@dataclass
class ValidationResult:
    """
    Result of validating settings.

    Attributes:
        is_valid: True if settings can be applied (possibly with warnings)
        status: "accepted", "accepted_with_warnings", or "rejected"
        issues: List of all validation issues found
    """
    is_valid: bool
    status: str
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API response."""
        warnings = [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

        return {
            "is_valid": self.is_valid,
            "status": self.status,
            "error_count": len(self.errors),
            "warning_count": len(warnings),
            "issues": [issue.to_dict() for issue in self.issues],
        }


class ConfigurationError(ValueError):
    """Raised when settings are rejected. Carries the ValidationResult."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(issue.message for issue in result.errors)
        super().__init__(f"Invalid press configuration: {messages}")


class InvariantViolation(RuntimeError):
    """Internal-consistency fault. Indicates a bug, not a process condition."""


class SettingsValidator:
    """
    Validation guard for press settings.

    Example:
        validator = SettingsValidator()
        result = validator.validate(PressSettings(tolerance_pct=0))
        print(result.status)  # "rejected"
    """

    def __init__(self, strict_mode: bool = False):
        """
        Initialize the validator.

        Args:
            strict_mode: If True, treat warnings as errors
        """
        self.strict_mode = strict_mode

    def validate(self, settings: PressSettings) -> ValidationResult:
        """
        Validate settings against all rules.

        Args:
            settings: Candidate settings

        Returns:
            ValidationResult with status and any issues found
        """
        # Ordering and range rules are meaningless on NaN/inf, so stop here
        issues: List[ValidationIssue] = self._validate_finite(settings)
        if issues:
            return ValidationResult(is_valid=False, status="rejected", issues=issues)

        issues.extend(self._validate_setpoints(settings))
        issues.extend(self._validate_vibration_ordering(settings))
        issues.extend(self._validate_phase_durations(settings))
        issues.extend(self._validate_probabilities(settings))
        issues.extend(self._validate_bookkeeping(settings))

        errors = [i for i in issues if i.severity == ValidationSeverity.ERROR]
        warnings = [i for i in issues if i.severity == ValidationSeverity.WARNING]

        if errors:
            return ValidationResult(is_valid=False, status="rejected", issues=issues)
        elif warnings:
            if self.strict_mode:
                for w in warnings:
                    w.severity = ValidationSeverity.ERROR
                return ValidationResult(is_valid=False, status="rejected", issues=issues)
            return ValidationResult(
                is_valid=True, status="accepted_with_warnings", issues=issues
            )
        else:
            return ValidationResult(is_valid=True, status="accepted", issues=issues)

    def _validate_finite(self, s: PressSettings) -> List[ValidationIssue]:
        """Every numeric setting must be a finite number (no NaN or inf)."""
        issues = []

        values = [(name, getattr(s, name)) for name in NUMERIC_SETTINGS]
        values.extend(
            (f"phase_durations.{phase}", ticks)
            for phase, ticks in s.phase_durations.items()
        )
        for name, value in values:
            if not _is_finite(value):
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    rule_name="finite_number",
                    message=f"{name} must be a finite number",
                    setting_name=name,
                    actual_value=value if isinstance(value, (int, float)) else None,
                    expected_range="finite",
                ))

        return issues

    def _validate_setpoints(self, s: PressSettings) -> List[ValidationIssue]:
        """Setpoints and tolerance must be positive; setpoints should be reachable."""
        issues = []

        for name in ("target_temp", "target_pressure", "tolerance_pct"):
            value = getattr(s, name)
            if value <= 0:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    rule_name=f"{name}_positive",
                    message=f"{name} must be positive",
                    setting_name=name,
                    actual_value=value,
                    expected_range="> 0",
                ))

        # Reachability against the clamp bounds of the process model
        if 0 < s.target_temp and not (25.0 <= s.target_temp <= 220.0):
            issues.append(ValidationIssue(
                severity=ValidationSeverity.WARNING,
                rule_name="target_temp_reachable",
                message="target_temp lies outside the mold temperature range and can never be reached",
                setting_name="target_temp",
                actual_value=s.target_temp,
                expected_range="25 - 220°C",
            ))
        if 0 < s.target_pressure and s.target_pressure > 260.0:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.WARNING,
                rule_name="target_pressure_reachable",
                message="target_pressure exceeds the hydraulic limit and can never be reached",
                setting_name="target_pressure",
                actual_value=s.target_pressure,
                expected_range="0 - 260 bar",
            ))
        if s.tolerance_pct >= 100:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.WARNING,
                rule_name="tolerance_pct_wide",
                message="tolerance_pct of 100% or more disables deviation alerts",
                setting_name="tolerance_pct",
                actual_value=s.tolerance_pct,
                expected_range="< 100%",
            ))

        return issues

    def _validate_vibration_ordering(self, s: PressSettings) -> List[ValidationIssue]:
        """Vibration thresholds must satisfy 0 < safe < warning < critical."""
        issues = []

        if s.vibration_safe <= 0:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                rule_name="vibration_safe_positive",
                message="vibration_safe must be positive",
                setting_name="vibration_safe",
                actual_value=s.vibration_safe,
                expected_range="> 0 mm/s",
            ))
        if s.vibration_safe >= s.vibration_warning:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                rule_name="vibration_threshold_order",
                message="vibration_safe must be below vibration_warning",
                setting_name="vibration_safe",
                actual_value=s.vibration_safe,
                expected_range=f"< {s.vibration_warning} mm/s",
            ))
        if s.vibration_warning >= s.vibration_critical:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                rule_name="vibration_threshold_order",
                message="vibration_warning must be below vibration_critical",
                setting_name="vibration_warning",
                actual_value=s.vibration_warning,
                expected_range=f"< {s.vibration_critical} mm/s",
            ))

        return issues

    def _validate_phase_durations(self, s: PressSettings) -> List[ValidationIssue]:
        """Every phase needs a positive integer duration."""
        issues = []
        for phase_name in DEFAULT_PHASE_DURATIONS:
            ticks = s.phase_durations.get(phase_name)
            if ticks is None:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    rule_name="phase_duration_missing",
                    message=f"No duration configured for phase {phase_name}",
                    setting_name=f"phase_durations.{phase_name}",
                ))
            elif int(ticks) != ticks or ticks <= 0:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    rule_name="phase_duration_positive",
                    message=f"Duration of phase {phase_name} must be a positive whole number of ticks",
                    setting_name=f"phase_durations.{phase_name}",
                    actual_value=ticks,
                    expected_range=">= 1 tick",
                ))

        unknown = set(s.phase_durations) - set(DEFAULT_PHASE_DURATIONS)
        for name in sorted(unknown):
            issues.append(ValidationIssue(
                severity=ValidationSeverity.ERROR,
                rule_name="phase_unknown",
                message=f"Unknown phase in phase_durations: {name}",
                setting_name=f"phase_durations.{name}",
            ))

        return issues

    def _validate_probabilities(self, s: PressSettings) -> List[ValidationIssue]:
        issues = []
        for name in ("vibration_critical_probability", "vibration_warning_probability"):
            value = getattr(s, name)
            if not 0.0 <= value <= 1.0:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    rule_name="probability_range",
                    message=f"{name} must be in [0, 1]",
                    setting_name=name,
                    actual_value=value,
                    expected_range="0 - 1",
                ))
        return issues

    def _validate_bookkeeping(self, s: PressSettings) -> List[ValidationIssue]:
        issues = []
        for name in ("history_capacity", "alert_capacity"):
            value = getattr(s, name)
            if int(value) != value or value < 1:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    rule_name=f"{name}_positive",
                    message=f"{name} must be a positive integer",
                    setting_name=name,
                    actual_value=value,
                    expected_range=">= 1",
                ))
        for name in ("dedup_window_s", "tick_interval_s"):
            value = getattr(s, name)
            if value <= 0:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    rule_name=f"{name}_positive",
                    message=f"{name} must be positive",
                    setting_name=name,
                    actual_value=value,
                    expected_range="> 0 s",
                ))
        for name in ("initial_total_cycles", "initial_reject_count"):
            value = getattr(s, name)
            if value < 0:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    rule_name=f"{name}_non_negative",
                    message=f"{name} cannot be negative",
                    setting_name=name,
                    actual_value=value,
                    expected_range=">= 0",
                ))
        return issues


def validate_settings(settings: PressSettings, strict: bool = False) -> ValidationResult:
    """
    Convenience function to validate settings.

    Example:
        result = validate_settings(PressSettings(vibration_safe=6.0))
        if not result.is_valid:
            print(result.issues[0].message)
    """
    return SettingsValidator(strict_mode=strict).validate(settings)


def ensure_valid(settings: PressSettings) -> PressSettings:
    """Return settings unchanged, or raise ConfigurationError if rejected."""
    result = validate_settings(settings)
    if not result.is_valid:
        raise ConfigurationError(result)
    for issue in result.issues:
        logger.warning(f"Settings warning ({issue.rule_name}): {issue.message}")
    return settings
