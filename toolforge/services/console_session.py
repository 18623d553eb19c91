"""Selection and regeneration state for one console editing session."""

import logging
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel

from toolforge.infra.errors import ToolSpecError
from toolforge.models.generation import GenerateToolSpecRequest
from toolforge.models.tool_spec import DataType, ToolSpecification

logger = logging.getLogger("toolforge.services.console_session")

IN_PROGRESS_TEXT = "Regenerating tool specification..."


class SessionState(str, Enum):
    UNSELECTED = "unselected"
    SELECTING = "selecting"
    CONFIRMED = "confirmed"
    REVIEWING = "reviewing"
    REGENERATING = "regenerating"
    LOADING = "loading"


class ChatMessage(BaseModel):
    id: str
    role: str  # "user" | "assistant"
    content: str
    in_progress: bool = False


class InvalidTransition(Exception):
    """An action was attempted from a state that does not allow it."""


class ConsoleSession:
    """
    Drives the generation pipeline the way the console does.

    The session owns the transcript and the latest spec, and passes that
    spec back in on every regeneration. A failed generation rewrites the
    in-progress message with the error and keeps the last good spec.
    """

    def __init__(self, pipeline, model: Optional[str] = None):
        self.pipeline = pipeline
        self.model = model
        self.state = SessionState.UNSELECTED
        self.data_type: Optional[DataType] = None
        self.name: Optional[str] = None
        self.db_name: Optional[str] = None
        self.tool_spec: Optional[ToolSpecification] = None
        self.messages: List[ChatMessage] = []
        self.error: Optional[str] = None
        self._counter = 0

    def _add_message(self, role: str, content: str, in_progress: bool = False) -> ChatMessage:
        self._counter += 1
        message = ChatMessage(id=f"{role}-{self._counter}", role=role, content=content, in_progress=in_progress)
        self.messages.append(message)
        return message

    def _finish_in_progress(self, content: str) -> None:
        for message in reversed(self.messages):
            if message.in_progress:
                message.content = content
                message.in_progress = False
                return
        self._add_message("assistant", content)

    def select(
        self,
        data_type: Optional[DataType] = None,
        name: Optional[str] = None,
        db_name: Optional[str] = None,
    ) -> None:
        """Change the selection; a change after confirmation starts over."""
        if self.state in (SessionState.REGENERATING, SessionState.LOADING):
            raise InvalidTransition(f"Cannot change selection while {self.state.value}")

        new_data_type = data_type if data_type is not None else self.data_type
        new_name = name if name is not None else self.name
        new_db_name = db_name if db_name is not None else self.db_name
        changed = (new_data_type, new_name, new_db_name) != (self.data_type, self.name, self.db_name)

        self.data_type, self.name, self.db_name = new_data_type, new_name, new_db_name
        if self.state in (SessionState.CONFIRMED, SessionState.REVIEWING):
            if not changed:
                return
            self.tool_spec = None
        self.state = SessionState.SELECTING

    async def confirm(self, prompt: Optional[str] = None) -> bool:
        """Confirm the selection and run the first generation."""
        if self.state != SessionState.SELECTING:
            raise InvalidTransition(f"Cannot confirm from {self.state.value}")
        if not self.name or not self.data_type:
            self.error = "Please provide a collection/table name and data type."
            return False

        self.state = SessionState.CONFIRMED
        self.error = None
        where = f' in "{self.db_name}"' if self.db_name else ""
        self._add_message(
            "assistant",
            f'Selected {self.data_type.value} "{self.name}"{where}. Generating tool specification...',
        )
        return await self._generate(prompt)

    async def regenerate(self, prompt: Optional[str] = None) -> bool:
        """Refine the current spec with a new request."""
        if self.state != SessionState.REVIEWING:
            raise InvalidTransition(f"Cannot regenerate from {self.state.value}")
        self.state = SessionState.REGENERATING
        return await self._generate(prompt)

    def load_tool(self, tool: ToolSpecification) -> None:
        """Resume editing a saved tool without generating."""
        self.state = SessionState.LOADING
        self.data_type = tool.data_type or DataType.COLLECTION
        self.name = tool.source_name or ""
        self.db_name = tool.db_name or None
        self.tool_spec = tool
        self.error = None
        self.messages = []
        self._add_message("assistant", f'Loaded tool "{tool.name}" for editing.')
        self.state = SessionState.REVIEWING

    def edit(self, tool_spec: ToolSpecification) -> None:
        """Replace the spec with a manual edit."""
        if self.state != SessionState.REVIEWING:
            raise InvalidTransition(f"Cannot edit from {self.state.value}")
        self.tool_spec = tool_spec

    def _fail(self, message: str) -> None:
        self.error = message
        self._finish_in_progress(f"Error: {message}")
        self.state = SessionState.REVIEWING

    async def _generate(self, prompt: Optional[str]) -> bool:
        if prompt and prompt.strip():
            self._add_message("user", prompt)
        self._add_message("assistant", IN_PROGRESS_TEXT, in_progress=True)

        request = GenerateToolSpecRequest(
            data_type=self.data_type.value,
            name=self.name,
            db_name=self.db_name,
            prompt=prompt,
            existing_tool_spec=self.tool_spec.to_document() if self.tool_spec else None,
            model=self.model,
        )

        try:
            result = await self.pipeline.generate(request)
        except ToolSpecError as e:
            logger.warning(f"Generation failed: {e.message}")
            self._fail(e.message)
            return False
        except Exception as e:
            logger.error(f"Generation failed unexpectedly: {e}", exc_info=True)
            self._fail(str(e) or type(e).__name__)
            return False

        self.tool_spec = result.tool_spec
        self.error = None
        using = f" using {self.model}" if self.model else ""
        self._finish_in_progress(
            result.explanation
            or f"Tool specification generated successfully{using}!\n\n"
               "Review and customize it before saving."
        )
        self.state = SessionState.REVIEWING
        return True
