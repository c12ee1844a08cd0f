"""
Work mode: providers chained through an ordered sequence of dependent steps.

A workflow is planned once per conversation, then driven forward by
`WorkflowEngine.advance`. Each step's prompt carries every earlier step's
output, so at most one step of a workflow may be in flight at a time.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..errors import NotFoundError, ValidationError, WorkflowBusyError
from ..models import (
    Conversation,
    Mode,
    Response,
    ResponseStatus,
    WorkflowState,
    WorkflowStep,
    now_iso,
)
from ..providers import ProviderRegistry, ProviderResult
from ..store import Store
from .tasks import BackgroundTasks

logger = logging.getLogger(__name__)


ANALYZE_PROMPT = """You are the first AI in a collaborative workflow. Analyze this problem thoroughly:

"{query}"

Your job is to:
1. Break down the core components of this problem
2. Identify what information/analysis is needed
3. Provide your initial analysis and findings
4. Set up the foundation for the next AI to build upon

Be comprehensive but organized. The next AI will build on your work."""

DEVELOP_PROMPT = """You are the second AI in a collaborative workflow. The previous AI has analyzed: "{query}"

Previous analysis will be provided to you. Your job is to:
1. Review and build upon the previous analysis
2. Develop detailed solutions, recommendations, or next steps
3. Add depth and practical insights
4. Prepare comprehensive material for final synthesis

Build constructively on what came before while adding your unique perspective."""

SYNTHESIZE_PROMPT = """You are the final AI in this collaborative workflow for: "{query}"

You will receive all previous analyses and solutions. Your job is to:
1. Synthesize all previous work into a coherent whole
2. Resolve any contradictions or gaps
3. Create a comprehensive, actionable final deliverable
4. Ensure practical utility and clear next steps

Create the definitive response that incorporates the best of all previous work."""


def plan_workflow(query: str, providers: list[str]) -> WorkflowState:
    """Build the fixed-shape step list: analyze, develop, and synthesize when a third provider exists."""
    if not providers:
        raise ValidationError("A workflow needs at least one provider")

    steps = [
        WorkflowStep(
            step=1,
            provider=providers[0],
            objective=(
                f'Analyze the core problem: "{query}" - '
                "Identify key components, requirements, and approach"
            ),
            prompt=ANALYZE_PROMPT.format(query=query),
        ),
        WorkflowStep(
            step=2,
            provider=providers[1] if len(providers) > 1 else providers[0],
            objective="Build on the foundation analysis and develop detailed solutions/recommendations",
            prompt=DEVELOP_PROMPT.format(query=query),
        ),
    ]

    if len(providers) >= 3:
        steps.append(WorkflowStep(
            step=3,
            provider=providers[2],
            objective="Synthesize all previous work into a comprehensive, actionable final deliverable",
            prompt=SYNTHESIZE_PROMPT.format(query=query),
        ))

    return WorkflowState(
        original_query=query,
        providers=list(providers),
        steps=steps,
        current_step=0,
        collaborative_doc=document_header(query, providers),
    )


def document_header(query: str, providers: list[str]) -> str:
    return f"# {query}\n\n*Collaborative analysis by: {', '.join(providers)}*\n\n---\n\n"


def render_section(step: WorkflowStep) -> str:
    return f"\n## Step {step.step}: {step.provider}\n*{step.objective}*\n\n{step.output}\n\n---\n"


def build_step_prompt(state: WorkflowState, index: int) -> str:
    step = state.steps[index]
    prompt = step.prompt

    previous = [s for s in state.steps[:index] if s.completed]
    if previous:
        sections = "\n".join(
            f"\n--- {s.provider} Analysis (Step {s.step}) ---\n{s.output}" for s in previous
        )
        prompt += (
            f"\n\nPREVIOUS COLLABORATIVE WORK:\n{sections}"
            "\n\nNow build upon this work with your analysis:"
        )

    return prompt


@dataclass
class StepStatus:
    step_number: int
    provider: str
    objective: str
    completed: bool
    status: str

    def to_dict(self) -> dict:
        return {
            "step_number": self.step_number,
            "provider": self.provider,
            "objective": self.objective,
            "completed": self.completed,
            "status": self.status,
        }


@dataclass
class WorkflowStatus:
    status: str
    total_steps: int = 0
    current_step: int = 0
    completed_steps: int = 0
    in_progress: bool = False
    steps: list[StepStatus] = field(default_factory=list)
    collaborative_doc: str = ""

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "total_steps": self.total_steps,
            "current_step": self.current_step,
            "completed_steps": self.completed_steps,
            "in_progress": self.in_progress,
            "steps": [s.to_dict() for s in self.steps],
            "collaborative_doc": self.collaborative_doc,
        }


class WorkflowEngine:
    def __init__(self, store: Store, tasks: Optional[BackgroundTasks] = None):
        self.store = store
        self.tasks = tasks or BackgroundTasks()
        self._in_flight: set[str] = set()

    def is_running(self, conversation_id: str) -> bool:
        return conversation_id in self._in_flight

    async def _load(self, conversation_id: str) -> Conversation:
        conversation = await self.store.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        if conversation.workflow_state is None:
            raise ValidationError(f"Conversation {conversation_id} has no workflow")
        return conversation

    async def plan(
        self,
        conversation_id: str,
        providers: list[str],
        query: Optional[str] = None,
    ) -> WorkflowState:
        """Attach a new workflow for `query` (the conversation's own query by default)."""
        conversation = await self.store.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        if conversation.mode != Mode.WORK:
            raise ValidationError(
                f"Conversation {conversation_id} is a {conversation.mode.value} conversation"
            )
        if conversation.workflow_state is not None:
            raise ValidationError(f"Conversation {conversation_id} already has a workflow")

        state = plan_workflow(query or conversation.query, providers)
        await self.store.update_conversation(conversation_id, state)
        logger.info(
            "Work %s: planned %d steps (%s)",
            conversation_id,
            state.total_steps,
            " -> ".join(s.provider for s in state.steps),
        )
        return state

    async def advance(
        self,
        conversation_id: str,
        registry: ProviderRegistry,
        close_registry: bool = False,
    ) -> Optional[Response]:
        """
        Start the next pending step and keep going until the workflow completes or a step fails.

        Returns the pending response of the step just opened, or None when the
        workflow is already complete. Raises WorkflowBusyError while another
        step of the same workflow is still running. With `close_registry`, the
        registry is closed once the run ends, or right away when nothing runs.
        """
        if conversation_id in self._in_flight:
            raise WorkflowBusyError(conversation_id)
        self._in_flight.add(conversation_id)

        started = False
        try:
            conversation = await self._load(conversation_id)
            state = conversation.workflow_state

            if state.is_complete:
                logger.info("Work %s: already complete", conversation_id)
                return None

            if state.step_in_progress:
                logger.warning(
                    "Work %s: clearing stale in-progress flag on step %d",
                    conversation_id,
                    state.current_step + 1,
                )

            response = await self._open_step(conversation_id, state)
            self.tasks.spawn(
                self._run(conversation_id, state, response, registry, close_registry),
                name=f"work-{conversation_id[:8]}",
            )
            started = True
            return response
        finally:
            if not started:
                self._in_flight.discard(conversation_id)
                if close_registry:
                    await registry.aclose()

    async def _open_step(self, conversation_id: str, state: WorkflowState) -> Response:
        step = state.steps[state.current_step]
        state.step_in_progress = True
        await self.store.update_conversation(conversation_id, state)
        return await self.store.create_response(conversation_id, step.provider, work_step=step.label)

    async def _run(
        self,
        conversation_id: str,
        state: WorkflowState,
        response: Optional[Response],
        registry: ProviderRegistry,
        close_registry: bool = False,
    ) -> None:
        try:
            while True:
                try:
                    succeeded = await self._execute_step(conversation_id, state, response, registry)
                except Exception as e:
                    await self._record_crash(conversation_id, state, response, e)
                    break
                if not succeeded:
                    break
                if state.is_complete:
                    logger.info(
                        "Work %s: workflow complete, all %d steps finished",
                        conversation_id,
                        state.total_steps,
                    )
                    break
                logger.info(
                    "Work %s: continuing to step %d/%d with %s",
                    conversation_id,
                    state.current_step + 1,
                    state.total_steps,
                    state.steps[state.current_step].provider,
                )
                response = None
                try:
                    response = await self._open_step(conversation_id, state)
                except Exception as e:
                    await self._record_crash(conversation_id, state, response, e)
                    break
        finally:
            self._in_flight.discard(conversation_id)
            if close_registry:
                await registry.aclose()

    async def _record_crash(
        self,
        conversation_id: str,
        state: WorkflowState,
        response: Optional[Response],
        error: Exception,
    ) -> None:
        """Persist an unexpected failure as an errored step so the workflow stalls visibly."""
        logger.error(
            "Work %s: step %d crashed: %s",
            conversation_id,
            state.current_step + 1,
            error,
            exc_info=error,
        )
        try:
            if response is not None:
                current = await self.store.get_response(response.id)
                if current is not None and current.status == ResponseStatus.PENDING:
                    await self.store.finish_response(response.id, ResponseStatus.ERROR, f"Error: {error}")
            state.step_in_progress = False
            await self.store.update_conversation(conversation_id, state)
        except Exception:
            logger.exception("Work %s: could not record the step failure", conversation_id)

    async def _execute_step(
        self,
        conversation_id: str,
        state: WorkflowState,
        response: Response,
        registry: ProviderRegistry,
    ) -> bool:
        index = state.current_step
        step = state.steps[index]
        prompt = build_step_prompt(state, index)

        try:
            result = await registry.invoke(step.provider, prompt)
        except Exception as e:
            result = ProviderResult.fail(f"Error: {e}")

        if not (result.success and result.content):
            error = result.error or "Unknown error"
            await self.store.finish_response(response.id, ResponseStatus.ERROR, error)
            state.step_in_progress = False
            await self.store.update_conversation(conversation_id, state)
            logger.warning(
                "Work %s: step %d by %s failed, workflow stalled: %s",
                conversation_id,
                step.step,
                step.provider,
                error,
            )
            return False

        await self.store.finish_response(response.id, ResponseStatus.COMPLETE, result.content)

        step.completed = True
        step.output = result.content
        step.completed_at = now_iso()
        state.collaborative_doc += render_section(step)
        state.current_step = index + 1
        state.step_in_progress = False
        await self.store.update_conversation(conversation_id, state)

        logger.info(
            "Work %s: step %d/%d complete by %s",
            conversation_id,
            step.step,
            state.total_steps,
            step.provider,
        )
        return True

    async def describe(self, conversation_id: str) -> WorkflowStatus:
        conversation = await self.store.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")

        state = conversation.workflow_state
        if state is None:
            return WorkflowStatus(status="no_workflow")

        latest: dict[str, Response] = {}
        for response in await self.store.list_responses(conversation_id):
            if response.work_step:
                latest[response.work_step] = response

        steps = []
        for step in state.steps:
            response = latest.get(step.label)
            steps.append(StepStatus(
                step_number=step.step,
                provider=step.provider,
                objective=step.objective,
                completed=step.completed,
                status=response.status.value if response else ResponseStatus.PENDING.value,
            ))

        return WorkflowStatus(
            status="complete" if state.is_complete else "active",
            total_steps=state.total_steps,
            current_step=state.current_step,
            completed_steps=len(state.completed_steps),
            in_progress=self.is_running(conversation_id),
            steps=steps,
            collaborative_doc=state.collaborative_doc,
        )

    async def wait(self) -> None:
        await self.tasks.wait()
