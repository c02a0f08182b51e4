"""Pydantic models for decoded log records and the views built from them."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ── Message model ──────────────────────────────────────────────────

class ProcessingStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    STOPPED = "stopped"
    ERROR = "error"


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str = ""


class ToolUseBlock(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    id: str = ""
    name: str = ""
    input: Any = None  # opaque tool arguments, null when absent


ContentBlock = Annotated[Union[TextBlock, ToolUseBlock], Field(discriminator="type")]


class UserMessage(BaseModel):
    message_type: Literal["user"] = "user"
    id: str = ""
    parent_id: Optional[str] = None
    session_id: str = ""
    timestamp: datetime
    working_directory: str = ""
    git_branch: Optional[str] = None
    content: str = ""


class AssistantMessage(BaseModel):
    message_type: Literal["assistant"] = "assistant"
    id: str = ""
    parent_id: Optional[str] = None
    session_id: str = ""
    timestamp: datetime
    working_directory: str = ""
    git_branch: Optional[str] = None
    content: list[ContentBlock] = Field(default_factory=list)
    processing_status: ProcessingStatus = ProcessingStatus.PROCESSING
    stop_reason: Optional[str] = None


class SummaryMessage(BaseModel):
    message_type: Literal["summary"] = "summary"
    summary_text: str = ""
    leaf_id: str = ""


Message = Annotated[
    Union[UserMessage, AssistantMessage, SummaryMessage],
    Field(discriminator="message_type"),
]


# ── Session-related models ──────────────────────────────────────────

class IdeInfo(BaseModel):
    pid: int = 0
    workspace_folders: list[str] = Field(default_factory=list)
    ide_name: str = ""
    transport: str = ""
    running_in_windows: bool = False
    auth_token: str = ""


class ClaudeSession(BaseModel):
    session_id: str
    project_path: str
    first_timestamp: datetime
    last_timestamp: datetime
    file_modified_time: datetime
    message_count: int = 0
    git_branch: Optional[str] = None
    latest_content_preview: Optional[str] = None
    is_processing: bool = False
    ide_info: Optional[IdeInfo] = None


class ProjectSummary(BaseModel):
    project_path: str
    session_count: int = 0
    total_messages: int = 0
    last_activity: datetime
    active_todos: int = 0
    latest_message: Optional[str] = None
    ide_info: Optional[IdeInfo] = None


class SessionStats(BaseModel):
    total_sessions: int = 0
    total_messages: int = 0
    total_commands: int = 0
    active_projects: int = 0
    pending_todos: int = 0


# ── Todos and command history ──────────────────────────────────────

class TodoStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TodoPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TodoItem(BaseModel):
    id: str = ""
    content: str
    status: TodoStatus
    priority: TodoPriority = TodoPriority.MEDIUM
    session_id: Optional[str] = None  # taken from the todo file name, not the file body

    @property
    def is_open(self) -> bool:
        return self.status in (TodoStatus.PENDING, TodoStatus.IN_PROGRESS)


class CommandLogEntry(BaseModel):
    timestamp: datetime
    user: str
    command: str
    cwd: Optional[str] = None
    raw_timestamp: str = ""


# ── Settings ───────────────────────────────────────────────────────

class Hook(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    command: str


class HookMatcher(BaseModel):
    model_config = ConfigDict(extra="allow")

    matcher: str = ""
    hooks: list[Hook] = Field(default_factory=list)


class HookSettings(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    pre_tool_use: list[HookMatcher] = Field(default_factory=list, alias="PreToolUse")


class PermissionSettings(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    default_mode: str = Field("default", alias="defaultMode")
    allow: list[str] = Field(default_factory=list)
    deny: list[str] = Field(default_factory=list)


class ClaudeSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    permissions: PermissionSettings = Field(default_factory=PermissionSettings)
    hooks: HookSettings = Field(default_factory=HookSettings)


# ── File API ───────────────────────────────────────────────────────

class FileContent(BaseModel):
    path: str
    content: str
