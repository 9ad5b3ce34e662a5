"""Extract structured data from agent CLI output.

Model CLIs may wrap JSON in markdown code blocks or surround it with
explanations. These helpers recover the JSON object regardless.
"""

import json
import re
from typing import Any, Dict

from .exceptions import DecisionError

_CODE_BLOCK = re.compile(r"```(?:json)?\s*\n([\s\S]*?)\n```", re.MULTILINE)


class OutputParser:
    """Parse CLI output and extract structured content."""

    @staticmethod
    def extract_json(output: str, strict: bool = True) -> Dict[str, Any]:
        """Extract a JSON object from CLI output.

        Args:
            output: Raw output from the CLI
            strict: If True, raise when no JSON object is found.
                If False, return an empty dict instead.

        Returns:
            Parsed JSON object

        Raises:
            DecisionError: If no JSON object can be found (when strict=True)
        """
        if not output or not output.strip():
            if strict:
                raise DecisionError("Output is empty")
            return {}

        # Whole output first: --output-format json prints a single object
        try:
            data = json.loads(output)
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError:
            pass

        for match in _CODE_BLOCK.findall(output):
            try:
                data = json.loads(match.strip())
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                return data

        obj_start = output.find("{")
        obj_end = output.rfind("}")
        if obj_start != -1 and obj_end > obj_start:
            try:
                data = json.loads(output[obj_start : obj_end + 1])
                if isinstance(data, dict):
                    return data
            except json.JSONDecodeError:
                pass

        if strict:
            raise DecisionError(
                f"No valid JSON found in output. Output preview: {output[:200]}..."
            )
        return {}
