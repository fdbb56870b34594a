"""
Aggregator - Orchestriert parallele Upstream-Fetches und kombiniert die Bodies
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

import httpx

from .fetchers import FetchOutcome, HttpxFetcher

logger = logging.getLogger(__name__)

NO_TARGETS_MESSAGE = "No upstream URLs configured."
TOTAL_FAILURE_MESSAGE = "Failed to fetch one or more upstream services."


class ResultKind(str, Enum):
    COMBINED = "combined"
    TOTAL_FAILURE = "total_failure"
    NO_TARGETS = "no_targets"


@dataclass
class AggregationResult:
    """Ergebnis eines Aggregations-Requests"""
    kind: ResultKind
    body: str
    # Nur fürs Logging, wird nie in den Body geschrieben
    failed_targets: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.kind == ResultKind.COMBINED


STATUS_CODES = {
    ResultKind.COMBINED: 200,
    ResultKind.TOTAL_FAILURE: 500,
    ResultKind.NO_TARGETS: 500,
}


def iter_lines(body: str) -> Iterator[str]:
    """
    Zerlegt einen Body in Zeilen.

    Trenner ist \\n, ein abschließendes \\r wird entfernt. Ein finaler
    Zeilenumbruch erzeugt keine leere Zusatzzeile.
    """
    lines = body.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    for line in lines:
        yield line[:-1] if line.endswith("\r") else line


def filter_lines(body: str, prefixes: Sequence[str]) -> str:
    """
    Filtert einen Body zeilenweise nach Präfixen.

    - Keine Präfixe: Body unverändert
    - Sonst: jede Zeile, die mit einem der Präfixe beginnt, wird genau
      einmal (plus Newline) übernommen; alle anderen Zeilen entfallen
    """
    if not prefixes:
        return body

    kept = []
    for line in iter_lines(body):
        for prefix in prefixes:
            if line.startswith(prefix):
                kept.append(line + "\n")
                break
    return "".join(kept)


class Aggregator:
    """
    Fan-out/Join über alle konfigurierten Upstream-URLs.

    Die Konfiguration (URLs, Präfixe) wird beim Erstellen eingefroren und
    von allen Requests nur gelesen. Jeder Request bekommt seinen eigenen
    HttpxFetcher und seine eigenen Tasks.

    Concurrency:
    - ein asyncio Task pro URL, alle gestartet bevor einer awaited wird
    - kein Abbruch laufender Fetches, kein Early-Exit
    """

    def __init__(
        self,
        targets: Sequence[str],
        prefixes: Sequence[str] = (),
        verbose: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.targets: Tuple[str, ...] = tuple(targets)
        self.prefixes: Tuple[str, ...] = tuple(prefixes)
        self.verbose = verbose
        self._transport = transport

    async def aggregate(
        self,
        request_path: Optional[str] = None,
        remote_addr: Optional[str] = None,
    ) -> Tuple[AggregationResult, int]:
        """
        Fetcht alle URLs parallel und kombiniert die erfolgreichen Bodies.

        Args:
            request_path: Pfad des eingehenden Requests (nur fürs Logging)
            remote_addr: Adresse des Clients (nur fürs Logging)

        Returns:
            Tuple[AggregationResult, HTTP-Statuscode]
        """
        if self.verbose:
            logger.info(
                f"Received request for {request_path} from {remote_addr}, "
                f"fetching from {list(self.targets)}"
            )

        if not self.targets:
            result = AggregationResult(kind=ResultKind.NO_TARGETS, body=NO_TARGETS_MESSAGE)
            return result, STATUS_CODES[result.kind]

        combined = []
        failed = []

        async with HttpxFetcher(transport=self._transport) as fetcher:
            tasks = [asyncio.ensure_future(fetcher.fetch(url)) for url in self.targets]

            # Ergebnisse in Abschluss-Reihenfolge einsammeln
            for next_done in asyncio.as_completed(tasks):
                outcome: FetchOutcome = await next_done

                if not outcome.ok:
                    self._log_failure(outcome)
                    failed.append(outcome.url)
                    continue

                combined.append(filter_lines(outcome.body, self.prefixes))

        if len(failed) == len(self.targets):
            logger.error(f"All {len(failed)} upstream fetches failed")
            result = AggregationResult(
                kind=ResultKind.TOTAL_FAILURE,
                body=TOTAL_FAILURE_MESSAGE,
                failed_targets=failed
            )
            return result, STATUS_CODES[result.kind]

        if failed and self.verbose:
            logger.warning(f"Partial result: {len(failed)}/{len(self.targets)} upstreams failed: {failed}")

        result = AggregationResult(
            kind=ResultKind.COMBINED,
            body="".join(combined),
            failed_targets=failed
        )
        return result, STATUS_CODES[result.kind]

    def _log_failure(self, outcome: FetchOutcome):
        if self.verbose:
            logger.warning(f"Error fetching URL {outcome.url}: {outcome.error}")
        else:
            logger.debug(f"Error fetching URL {outcome.url}: {outcome.error}")
