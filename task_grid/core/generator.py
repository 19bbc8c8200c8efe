"""
Table Generator - "generate rows/columns from a prompt" collaborator

The generator builds a chat-completion request from the user's prompt and
the current table, sends it through LLMClient, and turns the JSON reply into
column and row suggestions. Merging the suggestions into the grid is the
editor's job (TableEditor.apply_generation).

The same collaborator converts the table to Power FX code (a Power Apps
collection built with Clear()/Collect()) and reads such code back as
columns and rows.

Also provides the token/cost estimate shown before a request is sent.
"""

import json
import math
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from task_grid.config import LLMConfig
from task_grid.core.grid_store import default_columns, new_task
from task_grid.models import (
    KNOWN_FIELDS,
    RESERVED_KEYS,
    Column,
    ColumnType,
    EditorSnapshot,
    GenerationRequest,
    GenerationUsage,
    Task,
    create_generation_request,
    response_text,
)
from task_grid.utils.exceptions import GenerationError
from task_grid.utils.llm_client import LLMClient
from task_grid.utils.logger import get_logger
from task_grid.utils.prompt_builder import PromptBuilder

logger = get_logger(__name__)

# USD per 1M tokens
MODEL_PRICING: Mapping[str, Mapping[str, float]] = MappingProxyType({
    "claude-3-5-haiku-20241022": MappingProxyType({"input": 0.80, "output": 4.00}),
    "claude-3-7-sonnet-20250219": MappingProxyType({"input": 3.00, "output": 15.00}),
})
DEFAULT_PRICING_MODEL = "claude-3-5-haiku-20241022"

OUTPUT_TOKEN_RATIO = 0.5

_FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_FENCED_CODE = re.compile(r"```[\w-]*[^\S\n]*\n?(.*?)```", re.DOTALL)


def estimate_tokens(text: str) -> int:
    """Rough token count: one token per four characters."""
    return math.ceil(len(text or "") / 4)


def input_adjustment_factor(row_count: int) -> float:
    return 1.30 if row_count < 10 else 1.40


def estimate_cost(input_tokens: int, output_tokens: int, model: str = DEFAULT_PRICING_MODEL) -> float:
    """Cost in USD; unknown models are priced like the default model."""
    pricing = MODEL_PRICING.get(model, MODEL_PRICING[DEFAULT_PRICING_MODEL])
    return (input_tokens / 1_000_000) * pricing["input"] + (output_tokens / 1_000_000) * pricing["output"]


@dataclass(frozen=True)
class TokenEstimate:
    """Pre-flight size and cost of a generation request."""
    input_tokens: int
    instruction_tokens: int
    adjusted_input_tokens: int
    estimated_output_tokens: int
    total_tokens: int
    adjusted_total_tokens: int
    cost: float
    model_name: str


@dataclass(frozen=True)
class GenerationResult:
    """
    Parsed suggestions from a generation reply.

    Attributes:
        columns: New columns to add (keys may already exist; the editor skips those)
        rows: New rows as column key -> value mappings
        usage: Token usage reported by the provider, if any
        raw_text: The reply text the result was parsed from
    """
    columns: Tuple[Column, ...] = ()
    rows: Tuple[Mapping[str, str], ...] = ()
    usage: Optional[GenerationUsage] = None
    raw_text: str = field(default="", repr=False)

    @property
    def is_empty(self) -> bool:
        return not self.columns and not self.rows

    def to_snapshot(self) -> EditorSnapshot:
        """
        The suggestions as a whole document (Power FX import).

        Without suggested columns the default column set is used. A repeated
        column id or key keeps its first column; row values for keys no
        column or fixed field reads are dropped.

        Raises:
            GenerationError: nothing to build a table from
        """
        if self.is_empty:
            raise GenerationError("reply holds no table data", response_excerpt=self.raw_text)

        columns: List[Column] = []
        seen_ids, seen_keys = set(), set(RESERVED_KEYS)
        for column in self.columns or default_columns():
            if column.id in seen_ids or column.key in seen_keys:
                logger.debug(f"Dropping repeated column '{column.id}'")
                continue
            seen_ids.add(column.id)
            seen_keys.add(column.key)
            columns.append(column)

        tasks = [
            new_task(columns, {k: v for k, v in row.items() if k in seen_keys or k in KNOWN_FIELDS})
            for row in self.rows
        ]
        return EditorSnapshot(tasks=tuple(tasks), columns=tuple(columns))


def _column_key(item: Mapping[str, Any]) -> str:
    key = item.get("key") or item.get("id")
    if key:
        return str(key)
    title = str(item.get("title") or "").strip()
    return title.lower().replace(" ", "_")


def _extract_json(text: str) -> Any:
    match = _FENCED_JSON.search(text)
    candidate = match.group(1) if match else text
    candidate = candidate.strip()
    if not candidate.startswith("{"):
        start, end = candidate.find("{"), candidate.rfind("}")
        if start < 0 or end <= start:
            raise GenerationError("reply contains no JSON object", response_excerpt=text)
        candidate = candidate[start:end + 1]
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        raise GenerationError(f"reply is not valid JSON ({e.msg})", response_excerpt=text, original_error=e) from e


def parse_generation_reply(text: str, usage: Optional[GenerationUsage] = None) -> GenerationResult:
    """
    Turn a reply into a GenerationResult.

    Accepts ``{"columns": [...], "rows": [...]}`` (``"tasks"`` is read as an
    alias for ``"rows"``), optionally inside a fenced code block.

    Raises:
        GenerationError: reply is not the expected JSON shape
    """
    data = _extract_json(text)
    if not isinstance(data, dict):
        raise GenerationError("reply JSON must be an object", response_excerpt=text)

    raw_columns = data.get("columns", [])
    raw_rows = data.get("rows", data.get("tasks", []))
    if "columns" not in data and "rows" not in data and "tasks" not in data:
        raise GenerationError("reply has neither columns nor rows", response_excerpt=text)
    if not isinstance(raw_columns, list) or not isinstance(raw_rows, list):
        raise GenerationError("columns and rows must be lists", response_excerpt=text)

    columns: List[Column] = []
    for item in raw_columns:
        if not isinstance(item, dict):
            raise GenerationError("column entries must be objects", response_excerpt=text)
        key = _column_key(item)
        if not key:
            raise GenerationError("column entry has no key, id or title", response_excerpt=text)
        column_type = str(item.get("type", ColumnType.TEXT.value)).lower()
        if column_type not in {t.value for t in ColumnType}:
            logger.warning(f"Unknown column type '{column_type}' for '{key}'; using text")
            column_type = ColumnType.TEXT.value
        columns.append(Column(
            id=key,
            key=key,
            title=str(item.get("title") or key).upper(),
            type=ColumnType(column_type),
        ))

    rows: List[Mapping[str, str]] = []
    for item in raw_rows:
        if not isinstance(item, dict):
            raise GenerationError("row entries must be objects", response_excerpt=text)
        rows.append(MappingProxyType({
            str(k): "" if v is None else str(v)
            for k, v in item.items()
            if k != "id"
        }))

    return GenerationResult(columns=tuple(columns), rows=tuple(rows), usage=usage, raw_text=text)


class TableGenerator:
    """
    Generation collaborator.

    Usage:
        generator = TableGenerator()
        result = generator.generate("Add an owner column and five tasks", tasks, columns)
        editor.apply_generation(result)

    Args:
        llm_client: Client used to reach the model (built from config on first use)
        config: LLM settings; defaults to the client's config or the environment
    """

    def __init__(self, llm_client: Optional[LLMClient] = None, config: Optional[LLMConfig] = None):
        if config is None:
            config = llm_client.config if llm_client is not None else LLMConfig.from_env()
        self.config = config
        self._llm_client = llm_client

    @property
    def llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = LLMClient(self.config)
        return self._llm_client

    def build_request(
        self,
        prompt: str,
        tasks: Sequence[Task],
        columns: Sequence[Column],
    ) -> GenerationRequest:
        return create_generation_request(
            model=self.config.model_name,
            system=PromptBuilder.build_generation_system_prompt(),
            prompt=PromptBuilder.build_generation_prompt(prompt, tasks, columns),
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )

    def estimate(self, prompt: str, tasks: Sequence[Task], columns: Sequence[Column]) -> TokenEstimate:
        """Estimate tokens and cost of generate() without calling the model."""
        request = self.build_request(prompt, tasks, columns)
        instruction_tokens = estimate_tokens(request["system"])
        input_tokens = sum(estimate_tokens(m["content"]) for m in request["messages"])

        adjusted_input = math.ceil(input_tokens * input_adjustment_factor(len(tasks)))
        total_input = adjusted_input + instruction_tokens
        estimated_output = math.ceil(total_input * OUTPUT_TOKEN_RATIO)

        return TokenEstimate(
            input_tokens=input_tokens,
            instruction_tokens=instruction_tokens,
            adjusted_input_tokens=adjusted_input,
            estimated_output_tokens=estimated_output,
            total_tokens=input_tokens + instruction_tokens,
            adjusted_total_tokens=total_input + estimated_output,
            cost=estimate_cost(total_input, estimated_output, self.config.model_name),
            model_name=self.config.model_name,
        )

    def _complete(self, request: GenerationRequest, purpose: str) -> Tuple[str, Optional[GenerationUsage]]:
        logger.info(f"Requesting {purpose} from {self.config.model_name}")
        response = self.llm_client.send(request)
        return response_text(response), response.get("usage")

    def generate(self, prompt: str, tasks: Sequence[Task], columns: Sequence[Column]) -> GenerationResult:
        """
        Ask the model for new columns/rows.

        Raises:
            LLMError: the model call failed
            GenerationError: the reply could not be parsed
        """
        if not prompt or not prompt.strip():
            raise GenerationError("prompt is empty")

        request = self.build_request(prompt, tasks, columns)
        text, usage = self._complete(request, f"generation ({len(tasks)} rows of context)")
        try:
            result = parse_generation_reply(text, usage=usage)
        except GenerationError as e:
            logger.error(f"Generation reply rejected: {e.message}")
            raise

        logger.info(f"Generation suggested {len(result.columns)} columns and {len(result.rows)} rows")
        return result

    def to_powerfx(self, tasks: Sequence[Task], columns: Sequence[Column]) -> str:
        """
        Power FX code that rebuilds the table as a Power Apps collection.

        Raises:
            LLMError: the model call failed
            GenerationError: the reply holds no code
        """
        request = create_generation_request(
            model=self.config.model_name,
            system=PromptBuilder.build_powerfx_export_system_prompt(),
            prompt=PromptBuilder.build_powerfx_export_prompt(tasks, columns),
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        text, _ = self._complete(request, f"Power FX export of {len(tasks)} rows")

        match = _FENCED_CODE.search(text)
        code = (match.group(1) if match else text).strip()
        if not code:
            logger.error("Power FX export reply was empty")
            raise GenerationError("reply contains no Power FX code", response_excerpt=text)
        return code

    def from_powerfx(self, code: str) -> GenerationResult:
        """
        Read the records of Power FX Collect() statements as columns and rows.

        Raises:
            LLMError: the model call failed
            GenerationError: empty code, or a reply that is not table JSON
        """
        if not code or not code.strip():
            raise GenerationError("Power FX code is empty")

        request = create_generation_request(
            model=self.config.model_name,
            system=PromptBuilder.build_powerfx_import_system_prompt(),
            prompt=PromptBuilder.build_powerfx_import_prompt(code),
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        text, usage = self._complete(request, "Power FX import")
        try:
            result = parse_generation_reply(text, usage=usage)
        except GenerationError as e:
            logger.error(f"Power FX import reply rejected: {e.message}")
            raise

        logger.info(f"Power FX import read {len(result.columns)} columns and {len(result.rows)} rows")
        return result
