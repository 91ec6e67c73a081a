"""
NYPD Shooting Analysis Script
Loads the shooting dataset, prints summaries, trains the borough classifier
and saves the charts. Settings come from configs/ and SP_* environment variables.
"""

import logging

from shooting_pulse.pipeline import format_summary, run_pipeline
from shooting_pulse.shared import PipelineError, configure_logging, get_config

logger = logging.getLogger(__name__)


def main() -> int:
    config = get_config()
    configure_logging(config)

    try:
        result = run_pipeline(config)
    except PipelineError as e:
        logger.error(f"Analysis aborted: {e}")
        return 1

    print(format_summary(result))
    if result.charts:
        print(f"\nCharts written to {config.reporting.output_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
