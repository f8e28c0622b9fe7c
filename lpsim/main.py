"""Entry point: run one scenario, write telemetry, optionally serve it."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

import uvicorn

from lpsim.common.config import Settings
from lpsim.common.errors import ConfigurationError, ScenarioAborted
from lpsim.simulator.driver import run_scenario
from lpsim.visibility.dashboard_server import DashboardServer
from lpsim.visibility.telemetry_sink import FanoutSink, FileSink, MemorySink, StreamSink, TelemetrySink

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_CONFIG = 2

log = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _output_sink(output: str) -> TelemetrySink:
    if output == "-":
        return StreamSink(sys.stdout)
    return FileSink(output)


def run(args: Optional[list[str]] = None) -> int:
    settings = Settings()

    parser = argparse.ArgumentParser(description="Run an lpsim pool scenario and emit telemetry")
    parser.add_argument("--scenario", default=settings.scenario_path, help="Scenario manifest (JSON); built-in default when omitted")
    parser.add_argument("--output", default=settings.telemetry_path, help="Telemetry destination, '-' for stdout")
    parser.add_argument("--log-level", default=settings.log_level, help=f"Log level (default {settings.log_level})")
    parser.add_argument("--serve", action="store_true", help="Serve records and metrics over HTTP after the run")
    parser.add_argument("--host", default=settings.metrics_host, help=f"Dashboard host (default {settings.metrics_host})")
    parser.add_argument("--port", type=int, default=settings.metrics_port, help=f"Dashboard port (default {settings.metrics_port})")
    parsed = parser.parse_args(args)

    _configure_logging(parsed.log_level)

    try:
        config = settings.load_scenario(parsed.scenario)
    except ConfigurationError as exc:
        log.error("Configuration error: %s", exc)
        return EXIT_CONFIG

    memory = MemorySink()
    sink = FanoutSink([_output_sink(parsed.output), memory])
    status, code = "completed", EXIT_OK
    try:
        run_scenario(config, sink=sink)
    except ConfigurationError as exc:
        log.error("Configuration error: %s", exc)
        return EXIT_CONFIG
    except ScenarioAborted as exc:
        log.error("%s (%d records kept)", exc, len(exc.records))
        status, code = "aborted", EXIT_ABORTED
    finally:
        sink.close()

    if parsed.serve:
        server = DashboardServer(config, memory, status=status)
        log.info("Serving telemetry on http://%s:%s", parsed.host, parsed.port)
        uvicorn.run(server.app, host=parsed.host, port=parsed.port, log_level="info")
    return code


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
