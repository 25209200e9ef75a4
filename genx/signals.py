"""
Signals sent by the genx bootstrap, and the default receivers.

``bootstrap_complete`` is sent once the bootstrap has cached every element
and initialised the modules it found:

    @receiver(bootstrap_complete)
    def on_ready(sender, context, loaded, stats, **kwargs):
        ...

``loaded`` lists the module prefixes actually initialised; ``stats`` holds
timings, element counts, styles and parser outcomes.
"""

import logging

from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

bootstrap_complete = Signal()


@receiver(bootstrap_complete)
def log_bootstrap_complete(sender, context, loaded, stats, **kwargs):
    """
    Log a one-line summary of every bootstrap.

    Failed parser loads are reported as warnings so a missing strategy is
    visible even though the bootstrap carried on without it.
    """
    logger.debug(
        f"genx ready: {stats['elements']['parsed']}/{stats['elements']['total']} elements parsed, "
        f"styles={stats['styles']}, modules={loaded}, {stats['total']:.2f}ms"
    )

    if stats["failed"]:
        logger.warning(f"genx bootstrap continued without parsers: {', '.join(stats['failed'])}")
