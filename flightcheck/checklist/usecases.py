from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol
import asyncio

from .models import Category, CheckItem, CompletionRecord, Profile, Step
from .toggle import CompletionState
from .view import ViewStep, build_checklist_view


class ChecklistRepoProtocol(Protocol):
    def list_steps(self) -> List[Step]:
        ...

    def list_categories(self) -> List[Category]:
        ...

    def list_items(self) -> List[CheckItem]:
        ...

    def list_completions(self, user_id: str) -> List[CompletionRecord]:
        ...

    def list_profiles(self, user_ids) -> List[Profile]:
        ...


@dataclass
class LoadChecklistInput:
    user_id: str
    with_actor_names: bool = False
    # Overrides the stored completions (e.g. a rolled-back toggle state).
    state: Optional[CompletionState] = None


@dataclass
class ChecklistPage:
    steps: List[ViewStep]
    state: CompletionState
    actor_names: Dict[str, str] = field(default_factory=dict)


class LoadChecklistUseCase:
    def __init__(self, repo: ChecklistRepoProtocol) -> None:
        self._repo = repo

    async def execute(self, req: LoadChecklistInput) -> ChecklistPage:
        """Fetch the checklist for one student and build the nested view.

        Why:
            The four reads are independent; running them concurrently in worker
            threads keeps page latency at one round trip instead of four.

        Behavior:
            - The first failing read raises `RemoteDataError`; nothing partial
              is rendered.
            - With `with_actor_names`, the cleared-by ids are resolved to
              display names in one extra read (skipped when nobody cleared
              anything yet).

        Permissions:
            Students may only load their own id; instructors/admins any student.
            Enforced by row-level security in the store.
        """
        reads = [
            asyncio.to_thread(self._repo.list_steps),
            asyncio.to_thread(self._repo.list_categories),
            asyncio.to_thread(self._repo.list_items),
        ]
        if req.state is None:
            reads.append(asyncio.to_thread(self._repo.list_completions, req.user_id))
        results = await asyncio.gather(*reads)
        steps, categories, items = results[0], results[1], results[2]
        state = req.state if req.state is not None else CompletionState(results[3])

        actor_names: Dict[str, str] = {}
        if req.with_actor_names:
            actor_ids = {r.cleared_by for r in state.records() if r.cleared_by}
            if actor_ids:
                profiles = await asyncio.to_thread(self._repo.list_profiles, actor_ids)
                actor_names = {p.user_id: p.display_name for p in profiles if p.display_name}

        view = build_checklist_view(
            steps,
            categories,
            items,
            state.records(),
            actor_names=actor_names if req.with_actor_names else None,
        )
        return ChecklistPage(steps=view, state=state, actor_names=actor_names)
