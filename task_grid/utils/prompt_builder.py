"""
Prompt builder module - Constructs prompts for table generation
"""

import json
from typing import Any, Dict, Sequence

from task_grid.models import Column, ColumnType, Task


class PromptBuilder:
    """
    Utility class for building the generation prompts.

    This centralizes all prompt construction logic, making it easier to
    maintain and test LLM interactions.
    """

    @staticmethod
    def build_generation_system_prompt() -> str:
        """System prompt asking for JSON column/row suggestions."""
        column_types = ", ".join(t.value for t in ColumnType)
        return f"""
You are an assistant that designs and fills task tables.
You receive the current table (columns and rows) and a request describing the
columns, rows or content the user wants added.
Follow these guidelines:
- Respond with ONLY a JSON object with two properties: "columns" and "rows"
- "columns" lists NEW columns only, each as {{"key": ..., "title": ..., "type": ...}}
- Column types must be one of: {column_types}
- "rows" lists NEW rows, each an object keyed by column key
- Use the existing column keys for existing columns; leave out keys you have no value for
- All row values are strings; dates use YYYY-MM-DD
- Do NOT add triple backticks or any text outside the JSON object
- CRITICAL: Do NOT truncate the output or abbreviate it with "..." or "etc."
"""

    @staticmethod
    def table_context(tasks: Sequence[Task], columns: Sequence[Column]) -> Dict[str, Any]:
        """The current table as the model sees it."""
        keys = [c.key for c in columns]
        return {
            "columns": [
                {"key": c.key, "title": c.title, "type": c.type.value}
                for c in columns
            ],
            "rows": [
                {key: task.get(key) for key in keys}
                for task in tasks
            ],
        }

    @staticmethod
    def build_generation_prompt(
        request: str,
        tasks: Sequence[Task],
        columns: Sequence[Column],
        max_context_rows: int = 50
    ) -> str:
        """
        Build the user message for a generation request.

        Args:
            request: What the user wants generated
            tasks: Current rows
            columns: Current columns
            max_context_rows: Rows of existing data included as context

        Returns:
            Formatted prompt string
        """
        context = PromptBuilder.table_context(list(tasks)[:max_context_rows], columns)
        omitted = max(len(tasks) - max_context_rows, 0)
        omitted_note = f"\n({omitted} more existing rows not shown)" if omitted else ""

        return f"""
REQUEST: {request}

CURRENT TABLE:
{json.dumps(context, indent=2)}{omitted_note}

Respond with the JSON object only.
"""

    @staticmethod
    def build_powerfx_export_system_prompt(collection_name: str = "ImportedData") -> str:
        """System prompt for turning the table into a Power Apps collection."""
        return f"""
You are an expert in converting data to Microsoft Power FX format for Power Apps.
Your task is to convert a JSON table into Power FX code that can be used in Power Apps.
The code should create a collection with all the data from the provided JSON.
Follow these guidelines:
- Create a Clear() statement to clear any existing collection
- Use a Collect() function to add all the records to the collection
- Name the collection "{collection_name}"
- Preserve all data types properly (text, date, etc.)
- Format the code to be easily readable
- Include comments to explain key parts of the code
- Only respond with the Power FX code and nothing else
"""

    @staticmethod
    def build_powerfx_export_prompt(tasks: Sequence[Task], columns: Sequence[Column]) -> str:
        """User message carrying every row; Power FX export is not truncated."""
        context = PromptBuilder.table_context(tasks, columns)
        return f"Convert this table data to Power FX code:\n{json.dumps(context, indent=2)}"

    @staticmethod
    def build_powerfx_import_system_prompt() -> str:
        """System prompt for reading Power FX Collect() data back as a table."""
        column_types = ", ".join(t.value for t in ColumnType)
        return f"""
You are an expert in converting Microsoft Power FX code to structured data.
Your task is to convert Power FX code from Power Apps into JSON data that can be imported into a table.
Follow these guidelines:
- Extract the data structure from the Power FX Collect() statements
- Return a JSON object with two properties: "columns" and "rows"
- "columns" lists every column as {{"key": ..., "title": ..., "type": ...}}
- Infer each column type from the data; it must be one of: {column_types}
- "rows" lists every record as an object keyed by column key; all values are strings
- Use the keys name, status, priority, startDate and deadline for those fields when present
- Only respond with the JSON and nothing else
"""

    @staticmethod
    def build_powerfx_import_prompt(code: str) -> str:
        return f"Convert this Power FX code to table data:\n{code}"
