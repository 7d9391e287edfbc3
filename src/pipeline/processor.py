# src/pipeline/processor.py
"""
Processing pipeline for one uploaded assignment.

    idle -> extracting -> classifying -> solving -> completed
                \\            \\             \\
                 +------------+-------------+--> error

`completed` and `error` are terminal until reset(). Gateway calls are never
retried; the user resets and uploads again.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Callable, List, Optional, Tuple

from src.config import AppConfig, load_config
from src.logging_setup import get_logger
from src.models.assignment import AssignmentResult, AssignmentType, Question
from src.tools.upload_adapter import FileData

logger = get_logger("assignment_processor", "assignment_processor.log")

DEFAULT_LANGUAGE = "python"
GENERIC_ERROR = "An unexpected error occurred during processing."


class ProcessingStep(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    CLASSIFYING = "classifying"
    SOLVING = "solving"
    COMPLETED = "completed"
    ERROR = "error"


WORKING_STEPS = (ProcessingStep.EXTRACTING, ProcessingStep.CLASSIFYING, ProcessingStep.SOLVING)

# Labels shown in the progress panel, in pipeline order.
STEP_LABELS: List[Tuple[ProcessingStep, str]] = [
    (ProcessingStep.EXTRACTING, "Extracting Content"),
    (ProcessingStep.CLASSIFYING, "Classifying Assignment"),
    (ProcessingStep.SOLVING, "Solving Questions"),
    (ProcessingStep.COMPLETED, "Ready to Export"),
]


def step_statuses(current: ProcessingStep, failed_at: Optional[ProcessingStep] = None) -> List[Tuple[str, str]]:
    """
    Return (label, status) for each pipeline step, status being one of
    "done", "active", "pending" or "failed".
    """
    order = [s for s, _ in STEP_LABELS]
    out = []
    if current == ProcessingStep.ERROR:
        failed_idx = order.index(failed_at) if failed_at in order else 0
        for idx, (step, label) in enumerate(STEP_LABELS):
            if idx < failed_idx:
                out.append((label, "done"))
            elif idx == failed_idx:
                out.append((label, "failed"))
            else:
                out.append((label, "pending"))
        return out

    current_idx = order.index(current) if current in order else -1
    for idx, (step, label) in enumerate(STEP_LABELS):
        if current == ProcessingStep.COMPLETED or idx < current_idx:
            out.append((label, "done"))
        elif idx == current_idx:
            out.append((label, "active"))
        else:
            out.append((label, "pending"))
    return out


def needs_execution(question: Question, assignment_type: AssignmentType) -> bool:
    if not question.code:
        return False
    return question.requires_execution or assignment_type == AssignmentType.CODING


class AssignmentProcessor:
    """
    Drives one upload through the pipeline.

    `gateway` needs extract_and_solve(file_data) and simulate_execution(code, language).
    `on_step` is called with every new step (the UI repaints from it).
    """

    def __init__(self, gateway, config: Optional[AppConfig] = None,
                 on_step: Optional[Callable[[ProcessingStep], None]] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.gateway = gateway
        self.config = config or load_config()
        self.on_step = on_step
        self._sleep = sleep
        self.step = ProcessingStep.IDLE
        self.error: Optional[str] = None
        self.failed_at: Optional[ProcessingStep] = None
        self.result: Optional[AssignmentResult] = None

    def _set_step(self, step: ProcessingStep) -> None:
        self.step = step
        logger.info("Processing step -> %s", step.value)
        if self.on_step is not None:
            self.on_step(step)

    def _fail(self, message: str) -> None:
        self.failed_at = self.step if self.step in WORKING_STEPS else None
        self.error = message
        self.result = None
        self._set_step(ProcessingStep.ERROR)

    def reset(self) -> None:
        self.step = ProcessingStep.IDLE
        self.error = None
        self.failed_at = None
        self.result = None
        logger.info("Processing reset to idle")

    def process(self, file_data: FileData) -> Optional[AssignmentResult]:
        """
        Run the full pipeline. Returns the solved document, or None when the
        run ended in the error state (see `self.error`).
        """
        if self.step != ProcessingStep.IDLE:
            raise RuntimeError(f"Processor must be reset before a new upload (current step: {self.step.value})")

        self.error = None
        self.result = None
        try:
            self._set_step(ProcessingStep.EXTRACTING)
            assignment = self.gateway.extract_and_solve(file_data)

            # classification arrives with the extraction; the pause keeps the phase visible
            self._set_step(ProcessingStep.CLASSIFYING)
            if self.config.classify_delay_seconds > 0:
                self._sleep(self.config.classify_delay_seconds)

            self._set_step(ProcessingStep.SOLVING)
            assignment.questions = self._run_executions(assignment)
        except Exception as e:
            logger.exception("Processing failed at step %s", self.step.value)
            self._fail(str(e) or GENERIC_ERROR)
            return None

        self.result = assignment
        self._set_step(ProcessingStep.COMPLETED)
        return assignment

    def _run_executions(self, assignment: AssignmentResult) -> List[Question]:
        """Simulate every eligible snippet concurrently and wait for all of them."""
        questions = list(assignment.questions)
        pending = [idx for idx, q in enumerate(questions) if needs_execution(q, assignment.type)]
        if not pending:
            return questions

        logger.info("Simulating execution for %d question(s)", len(pending))
        workers = max(1, min(self.config.execution_workers, len(pending)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                idx: pool.submit(
                    self.gateway.simulate_execution,
                    questions[idx].code,
                    questions[idx].language or DEFAULT_LANGUAGE,
                )
                for idx in pending
            }
            # any failed simulation fails the whole solving step
            outputs = {idx: fut.result() for idx, fut in futures.items()}

        for idx, output in outputs.items():
            questions[idx] = questions[idx].model_copy(update={"execution_output": output})
        return questions
