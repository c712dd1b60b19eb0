import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional

import yaml
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DEFAULT_PROMPTS_FILE = Path(__file__).resolve().parent / "prompts" / "drawio_prompts.yml"

DIAGRAM_PROMPTS_FILE = os.getenv("DIAGRAM_PROMPTS_FILE", str(DEFAULT_PROMPTS_FILE))
DIAGRAM_STRICT_REFERENCES = _env_flag("DIAGRAM_STRICT_REFERENCES")
DIAGRAM_LINK_EDGES = _env_flag("DIAGRAM_LINK_EDGES")
DIAGRAM_MAX_INPUT_CHARS = int(os.getenv("DIAGRAM_MAX_INPUT_CHARS", "2000000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

PROMPTS_ROOT_KEY = "drawio_prompts"
PROMPT_KEYS = (
    "system_prompt",
    "style_guide",
    "prompt",
    "follow_up_prompt",
    "correct_prompt",
    "verify_prompt",
)

FILES_PLACEHOLDER = "{{CODEBASEFILESUSERINPUT}}"
CONTEXT_PLACEHOLDER = "{{ADDITIONALCONTEXTUSERINPUT}}"
FOLLOW_UP_PLACEHOLDER = "{{FOLLOWUPUSERINPUT}}"


class PromptTemplateError(ValueError):
    """Prompt file is missing, unreadable, or lacks a template."""


def format_file_inputs(file_inputs: Iterable[Mapping[str, str]]) -> str:
    text = "The user has provided the following files:\n"
    for i, f in enumerate(file_inputs, start=1):
        text += f"File {i} ({f.get('name', '')}):\n{f.get('content', '')}\n\n"
    return text


@dataclass(frozen=True)
class PromptTemplates:
    system_prompt: str
    style_guide: str
    prompt: str
    follow_up_prompt: str
    correct_prompt: str
    verify_prompt: str

    @classmethod
    def from_mapping(cls, data) -> "PromptTemplates":
        if not isinstance(data, Mapping) or not isinstance(data.get(PROMPTS_ROOT_KEY), Mapping):
            raise PromptTemplateError(f"Prompt file has no '{PROMPTS_ROOT_KEY}' section")

        section = data[PROMPTS_ROOT_KEY]
        missing = [k for k in PROMPT_KEYS if not isinstance(section.get(k), str)]
        if missing:
            raise PromptTemplateError(f"Missing prompt template(s): {', '.join(missing)}")

        return cls(**{k: section[k] for k in PROMPT_KEYS})

    @classmethod
    def load(cls, path: Optional[str] = None) -> "PromptTemplates":
        prompt_path = Path(path or DIAGRAM_PROMPTS_FILE)
        try:
            with open(prompt_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise PromptTemplateError(f"Cannot read prompt file {prompt_path}: {e}") from e
        except yaml.YAMLError as e:
            raise PromptTemplateError(f"Invalid YAML in {prompt_path}: {e}") from e
        return cls.from_mapping(data)

    def build_initial_prompt(self, file_inputs: Iterable[Mapping[str, str]],
                             additional_context: str = "") -> str:
        return (
            self.prompt
            .replace(FILES_PLACEHOLDER, format_file_inputs(file_inputs))
            .replace(CONTEXT_PLACEHOLDER, additional_context)
        )

    def build_follow_up_prompt(self, follow_up_input: str) -> str:
        return self.follow_up_prompt.replace(FOLLOW_UP_PLACEHOLDER, follow_up_input)

    def build_correct_prompt(self) -> str:
        return self.correct_prompt

    def build_verify_prompt(self) -> str:
        return self.verify_prompt


@dataclass(frozen=True)
class PipelineConfig:
    """Everything a pipeline run needs; passed in explicitly, never read from globals."""
    prompts: Optional[PromptTemplates] = None
    strict_references: bool = False
    link_edges: bool = False
    max_input_chars: int = DIAGRAM_MAX_INPUT_CHARS

    @classmethod
    def from_env(cls, prompts_file: Optional[str] = None) -> "PipelineConfig":
        return cls(
            prompts=PromptTemplates.load(prompts_file),
            strict_references=DIAGRAM_STRICT_REFERENCES,
            link_edges=DIAGRAM_LINK_EDGES,
            max_input_chars=DIAGRAM_MAX_INPUT_CHARS,
        )
