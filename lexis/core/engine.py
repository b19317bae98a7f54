"""
Lexis Analysis Engine
======================

Orchestrates the static analysis pipeline for a single script:

Analysis Pipeline:
    1. Extract lexical features (entropy, encoded payloads, indicators)
    2. Compute the weighted obfuscation score
    3. Classify the score into benign / suspicious / malicious
    4. Derive threat categories, risk factors and recommendations
    5. Run named signature rules
    6. Bucket behaviour indicators
    7. Build the line-ordered timeline
    8. Simulate the sandbox verdict

Every stage after feature extraction is a pure function of the text, the
features, the verdict and the injected signature tables, so the engine
holds no per-call state and one instance may be shared freely.

References:
    - Bohannon, D., & Holmes, L. (2017). Revoke-Obfuscation: PowerShell
      Obfuscation Detection Using Science. Black Hat USA.
    - MITRE ATT&CK T1027 -- Obfuscated Files or Information.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Iterable

from shared.config import LexisConfig
from shared.logger import LexisLogger

from lexis.analyzers import explain
from lexis.analyzers.behavior import BehaviorCategorizer
from lexis.analyzers.features import FeatureExtractor
from lexis.analyzers.sandbox import SandboxSimulator
from lexis.analyzers.scoring import classify, obfuscation_score
from lexis.analyzers.signatures import SignatureMatcher
from lexis.analyzers.timeline import build_timeline
from lexis.core.models import AnalysisResult
from lexis.core.tables import DEFAULT_TABLES, SignatureTables


class LexisEngine:
    """Runs the complete Lexis pipeline over script text.

    Usage::

        engine = LexisEngine()
        result = engine.analyze(script_text, filename="dropper.ps1")
        print(result.classification.value, result.obfuscation_score)

    Or from disk::

        result = await engine.analyze_file("dropper.ps1")
    """

    def __init__(
        self,
        config: LexisConfig | None = None,
        logger: LexisLogger | None = None,
        tables: SignatureTables | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Lexis configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
            tables: Signature tables.  When omitted, the tables named by
                ``config.analyzer.tables_path`` are loaded, falling back
                to the built-in defaults.

        Raises:
            FileNotFoundError: If a configured tables file does not exist.
            ValueError: If a configured tables file is invalid.
        """
        self._config: LexisConfig = config or LexisConfig()
        settings = self._config.global_settings
        self._logger: LexisLogger = logger or LexisLogger(
            "engine",
            log_level=settings.log_level,
            log_file=settings.log_file or None,
            json_logs=settings.log_json,
        )

        if tables is None:
            tables_path = self._config.analyzer.tables_path
            tables = SignatureTables.load(tables_path) if tables_path else DEFAULT_TABLES
        self._tables: SignatureTables = tables

        self._extractor = FeatureExtractor(self._tables)
        self._matcher = SignatureMatcher(self._tables)
        self._behavior = BehaviorCategorizer()
        self._sandbox = SandboxSimulator()

    @property
    def tables(self) -> SignatureTables:
        return self._tables

    @property
    def config(self) -> LexisConfig:
        return self._config

    # ------------------------------------------------------------------ #
    #  In-memory analysis
    # ------------------------------------------------------------------ #

    def analyze(self, text: str, filename: str | None = None) -> AnalysisResult:
        """Analyse *text* and return an immutable :class:`AnalysisResult`.

        Never raises for any input string, including the empty string.

        Args:
            text: Raw script text.
            filename: Display name attached to the result.  Defaults to
                ``config.analyzer.default_filename``.

        Returns:
            The assembled analysis result.
        """
        name = filename or self._config.analyzer.default_filename

        with self._logger.operation("analyze"), self._logger.timed(f"analysis of {name}"):
            extracted = self._extractor.extract(text)
            score = obfuscation_score(extracted)
            features = extracted.model_copy(update={"obfuscation_score": score})
            classification, confidence = classify(score)

            result = AnalysisResult(
                filename=name,
                features=features,
                classification=classification,
                confidence=confidence,
                script_content=text,
                threat_categories=explain.threat_categories(features),
                risk_factors=explain.risk_factors(
                    features, self._config.analyzer.evidence_limit
                ),
                recommendations=explain.recommendations(features, classification),
                signature_matches=self._matcher.match(text),
                behavior_analysis=self._behavior.categorize(text),
                timeline=build_timeline(text),
                sandbox=self._sandbox.simulate(text, features),
            )

            self._logger.info(
                "Analyzed %s: %s (score %d, confidence %.2f)",
                name,
                classification.value,
                score,
                confidence,
                filename=name,
                score=score,
            )
        return result

    # ------------------------------------------------------------------ #
    #  File analysis
    # ------------------------------------------------------------------ #

    def read_script(self, file_path: str | Path) -> str:
        """Read and decode a script file, enforcing the size limit.

        Raises:
            FileNotFoundError: If *file_path* does not exist.
            ValueError: If the file exceeds ``analyzer.max_file_size``.
        """
        path = Path(file_path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")

        file_size = path.stat().st_size
        max_size = self._config.analyzer.max_file_size
        if file_size > max_size:
            raise ValueError(
                f"File too large: {file_size:,} bytes (max: {max_size:,} bytes)"
            )

        settings = self._config.analyzer
        return path.read_bytes().decode(settings.encoding, errors=settings.encoding_errors)

    async def analyze_file(self, file_path: str | Path) -> AnalysisResult:
        """Read *file_path* and analyse it in the default executor.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file exceeds the configured size limit.
        """
        path = Path(file_path)
        self._logger.debug("Reading %s", path)
        text = self.read_script(path)
        return await asyncio.get_running_loop().run_in_executor(
            None, self.analyze, text, path.name
        )

    def analyze_file_sync(self, file_path: str | Path) -> AnalysisResult:
        """Synchronous wrapper around :meth:`analyze_file`."""
        return asyncio.run(self.analyze_file(file_path))

    async def analyze_batch(self, paths: Iterable[str | Path]) -> list[AnalysisResult]:
        """Analyse many files concurrently.

        Concurrency is bounded by ``global.max_workers``.  Results are
        returned in the order of *paths*; the first failing file
        propagates its exception.
        """
        semaphore = asyncio.Semaphore(max(1, self._config.global_settings.max_workers))

        async def _bounded(path: str | Path) -> AnalysisResult:
            async with semaphore:
                return await self.analyze_file(path)

        targets = list(paths)
        self._logger.info("Analyzing %d file(s)", len(targets))
        return list(await asyncio.gather(*(_bounded(p) for p in targets)))


def analyze(text: str, filename: str = "script") -> AnalysisResult:
    """Analyse *text* with the default configuration and built-in tables."""
    return _default_engine().analyze(text, filename)


def _default_engine() -> LexisEngine:
    if not hasattr(_default_engine, "_cached"):
        _default_engine._cached = LexisEngine(  # type: ignore[attr-defined]
            config=LexisConfig(),
            logger=LexisLogger("default", log_level="WARNING", console_output=False),
            tables=DEFAULT_TABLES,
        )
    return _default_engine._cached  # type: ignore[attr-defined]
