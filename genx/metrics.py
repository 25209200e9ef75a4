"""
Performance bookkeeping for scans, parses and the bootstrap.

Targets are expressed per 1000 elements so small pages are not flagged for
fixed overhead; samples with 100 elements or fewer are never reported.
"""

import logging
import time

logger = logging.getLogger(__name__)

MIN_SAMPLE_SIZE = 100

PHASES = (
    "scan",
    "detect_styles",
    "load_parsers",
    "parse_elements",
    "init_modules",
    "setup_observer",
)


def normalized_ms(duration_ms, element_count):
    if not element_count:
        return 0.0
    return (duration_ms / element_count) * 1000


class PerformanceMetrics:
    def __init__(self, targets=None, warnings=False):
        self.targets = dict(targets or {})
        self.warnings = warnings
        self.reset()

    def reset(self):
        self.bootstrap = {"total": 0.0, "phases": {phase: 0.0 for phase in PHASES}}
        self.scans = []
        self.parses = []
        self.cache_hits = 0
        self.cache_misses = 0
        self.element_count = 0
        self.parsed_count = 0

    def record_scan(self, element_count, duration_ms):
        self.scans.append(
            {"element_count": element_count, "duration": duration_ms, "timestamp": time.time()}
        )
        self._check("scan1000", "Scan", duration_ms, element_count)

    def record_parse(self, element_count, parsed_count, cache_hits, duration_ms):
        self.parses.append(
            {
                "element_count": element_count,
                "parsed_count": parsed_count,
                "cache_hits": cache_hits,
                "duration": duration_ms,
                "timestamp": time.time(),
            }
        )
        self.element_count += element_count
        self.parsed_count += parsed_count
        self._check("parse1000", "Parse", duration_ms, element_count)

    def record_bootstrap(self, total_ms, phases):
        self.bootstrap = {"total": total_ms, "phases": dict(phases)}
        target = self.targets.get("bootstrap")
        if self.warnings and target is not None and total_ms > target:
            logger.warning(
                f"genx performance: bootstrap took {total_ms:.2f}ms (target <{target}ms)"
            )

    def _check(self, target_name, label, duration_ms, element_count):
        target = self.targets.get(target_name)
        if not self.warnings or target is None or element_count <= MIN_SAMPLE_SIZE:
            return
        normalized = normalized_ms(duration_ms, element_count)
        if normalized > target:
            logger.warning(
                f"genx performance: {label} took {duration_ms:.2f}ms for {element_count} elements "
                f"({normalized:.2f}ms/1000, target <{target}ms/1000)"
            )

    @property
    def cache_hit_rate(self):
        total = self.cache_hits + self.cache_misses
        return (self.cache_hits / total) * 100 if total else 0.0

    def as_dict(self):
        return {
            "bootstrap": self.bootstrap,
            "scans": list(self.scans),
            "parses": list(self.parses),
            "cache": {
                "hits": self.cache_hits,
                "misses": self.cache_misses,
                "total": self.cache_hits + self.cache_misses,
                "hit_rate": self.cache_hit_rate,
            },
            "elements": {"total": self.element_count, "parsed": self.parsed_count},
            "targets": dict(self.targets),
        }

    def validate(self, min_hit_rate=None):
        """
        Compare recorded samples against the targets.

        Args:
            min_hit_rate: Optional minimum cache hit rate (percent), useful
                after a second pass over the same elements

        Returns:
            Dict with ``passed`` and a list of ``failures``
        """
        failures = []

        bootstrap_target = self.targets.get("bootstrap")
        if bootstrap_target is not None and self.bootstrap["total"] > bootstrap_target:
            failures.append(
                {
                    "metric": "bootstrap.total",
                    "actual": self.bootstrap["total"],
                    "target": bootstrap_target,
                }
            )

        for samples, target_name, metric in (
            (self.scans, "scan1000", "scan.normalized"),
            (self.parses, "parse1000", "parse.normalized"),
        ):
            target = self.targets.get(target_name)
            if target is None:
                continue
            for sample in samples:
                if sample["element_count"] <= MIN_SAMPLE_SIZE:
                    continue
                normalized = normalized_ms(sample["duration"], sample["element_count"])
                if normalized > target:
                    failures.append({"metric": metric, "actual": normalized, "target": target})

        total = self.cache_hits + self.cache_misses
        if min_hit_rate is not None and total and self.cache_hit_rate < min_hit_rate:
            failures.append(
                {"metric": "cache.hit_rate", "actual": self.cache_hit_rate, "target": min_hit_rate}
            )

        return {"passed": not failures, "failures": failures}
