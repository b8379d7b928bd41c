"""
Validation of the resolved pair configuration before any bot starts.

- Range checks for maker/taker numeric parameters
- Strategy probability sanity
- Warnings for configurations that run but behave oddly
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Sequence, Tuple

from flashsim.core.models import TradingPair

logger = logging.getLogger("flashsim")


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    ERROR = auto()    # Blocks startup
    WARNING = auto()  # Logs warning but allows startup


@dataclass
class ValidationIssue:
    """A single validation issue."""
    field: str
    message: str
    severity: ValidationSeverity
    value: Any = None
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    """Result of config validation."""
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)

    def get_errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    def get_warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]


class ConfigValidator:
    """
    Validates every pair's effective maker and taker configuration.

    Range definitions are (min, max) inclusive.
    """

    MAKER_RANGES: Dict[str, Tuple[float, float]] = {
        "base_spread_percentage": (0.0, 0.5),
        "spread_volatility_multiplier": (0.0, 100.0),
        "depth_levels": (1, 200),
        "base_size_per_level": (0.0, 1e9),
        "size_randomization_factor": (0.0, 1.0),
        "update_interval_ms": (50, 3_600_000),
        "update_interval_variance": (0.0, 1.0),
        "cancel_replace_ratio": (0.0, 1.0),
        "max_price_deviation": (0.0, 1.0),
        "max_size_deviation": (0.0, 1.0),
    }

    TAKER_RANGES: Dict[str, Tuple[float, float]] = {
        "avg_action_interval_ms": (50, 3_600_000),
        "action_interval_variance": (0.0, 1.0),
        "market_order_probability": (0.0, 1.0),
        "base_order_size": (0.0, 1e9),
        "size_randomization_factor": (0.0, 1.0),
        "momentum_lookback_ticks": (2, 10_000),
        "mean_reversion_threshold": (0.0, 1.0),
    }

    def validate(self, pairs: Sequence[TradingPair]) -> ValidationResult:
        issues: List[ValidationIssue] = []
        if not pairs:
            issues.append(ValidationIssue(
                field="pairs",
                message="No trading pairs configured",
                severity=ValidationSeverity.ERROR,
                suggestion="Add at least one entry under 'pairs' in the pairs file",
            ))
        seen = set()
        for pair in pairs:
            if pair.symbol in seen:
                issues.append(ValidationIssue(
                    field=f"{pair.symbol}",
                    message=f"Pair '{pair.symbol}' configured more than once",
                    severity=ValidationSeverity.ERROR,
                ))
            seen.add(pair.symbol)
            issues.extend(self._validate_ranges(pair.symbol, "market_maker", pair.config.market_maker, self.MAKER_RANGES))
            issues.extend(self._validate_ranges(pair.symbol, "market_taker", pair.config.market_taker, self.TAKER_RANGES))
            issues.extend(self._validate_probabilities(pair))
            issues.extend(self._check_odd_configs(pair))
        has_errors = any(i.severity == ValidationSeverity.ERROR for i in issues)
        return ValidationResult(valid=not has_errors, issues=issues)

    def _validate_ranges(self, symbol: str, section: str, cfg: Any, ranges: Dict[str, Tuple[float, float]]) -> List[ValidationIssue]:
        issues = []
        for name, (min_val, max_val) in ranges.items():
            value = getattr(cfg, name)
            if value < min_val or value > max_val:
                issues.append(ValidationIssue(
                    field=f"{symbol}.{section}.{name}",
                    message=f"'{name}' value {value} outside [{min_val}, {max_val}]",
                    severity=ValidationSeverity.ERROR,
                    value=value,
                ))
        return issues

    def _validate_probabilities(self, pair: TradingPair) -> List[ValidationIssue]:
        issues = []
        probs = pair.config.market_taker.strategy_probabilities
        where = f"{pair.symbol}.market_taker.strategy_probabilities"
        for name in ("random", "momentum", "mean_reversion", "passive_limit"):
            value = getattr(probs, name)
            if value < 0:
                issues.append(ValidationIssue(
                    field=f"{where}.{name}",
                    message=f"Probability '{name}' is negative ({value})",
                    severity=ValidationSeverity.ERROR,
                    value=value,
                ))
        if abs(probs.total - 1.0) > 1e-6:
            issues.append(ValidationIssue(
                field=where,
                message=f"Strategy probabilities sum to {probs.total:.4f}; the remainder falls back to 'random'",
                severity=ValidationSeverity.WARNING,
                value=probs.total,
                suggestion="Make the four probabilities sum to 1.0",
            ))
        return issues

    def _check_odd_configs(self, pair: TradingPair) -> List[ValidationIssue]:
        issues = []
        maker = pair.config.market_maker
        if maker.depth_levels > 50:
            issues.append(ValidationIssue(
                field=f"{pair.symbol}.market_maker.depth_levels",
                message=f"Deep ladder ({maker.depth_levels} levels per side) means many venue calls per cycle",
                severity=ValidationSeverity.WARNING,
                value=maker.depth_levels,
            ))
        if maker.base_spread_percentage == 0:
            issues.append(ValidationIssue(
                field=f"{pair.symbol}.market_maker.base_spread_percentage",
                message="Zero base spread relies on volatility alone to separate bid and ask",
                severity=ValidationSeverity.WARNING,
                value=0.0,
            ))
        return issues


def validate_config(pairs: Sequence[TradingPair]) -> ValidationResult:
    return ConfigValidator().validate(pairs)


def validate_and_log(pairs: Sequence[TradingPair], logger_instance: Optional[logging.Logger] = None) -> bool:
    """Validate, log one event per issue and return whether startup may proceed."""
    log = logger_instance or logger
    result = validate_config(pairs)
    for issue in result.issues:
        is_error = issue.severity is ValidationSeverity.ERROR
        log.log(
            logging.ERROR if is_error else logging.WARNING,
            json.dumps({
                "event": "config_error" if is_error else "config_warning",
                "field": issue.field,
                "message": issue.message,
                "value": issue.value,
                "suggestion": issue.suggestion,
            }, default=str),
        )
    log.log(
        logging.INFO if result.valid else logging.ERROR,
        json.dumps({
            "event": "config_validated",
            "valid": result.valid,
            "pairs": [p.symbol for p in pairs],
            "errors": len(result.get_errors()),
            "warnings": len(result.get_warnings()),
        }),
    )
    return result.valid
