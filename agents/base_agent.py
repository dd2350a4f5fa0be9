"""Base agent: shared generation client and sectioned prompt templates."""

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Optional

from config.settings import Settings
from tools.agent_sdk_client import AgentSDKClient

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "config" / "prompts"

_HEADER_RE = re.compile(r"^## +(.+?)\s*$", re.MULTILINE)


def split_sections(template: str) -> dict[str, str]:
    """Split a markdown template into ``{header: body}`` on its '## ' headers.

    Text before the first header is dropped; bodies are stripped.
    """
    sections = {}
    headers = list(_HEADER_RE.finditer(template))
    for current, following in zip(headers, headers[1:] + [None]):
        end = following.start() if following is not None else len(template)
        sections[current.group(1)] = template[current.end():end].strip()
    return sections


@lru_cache(maxsize=16)
def load_prompt_sections(name: str) -> dict[str, str]:
    """Read config/prompts/<name>.md once and split it into sections.

    Raises:
        FileNotFoundError: If the template does not exist.
    """
    path = PROMPTS_DIR / f"{name}.md"
    if not path.is_file():
        raise FileNotFoundError(f"Prompt template not found: {path}")
    logger.debug(f"Loaded prompt template {path.name}")
    return split_sections(path.read_text(encoding="utf-8"))


class BaseAgent:
    """Base class for the agents that talk to the generation service.

    Subclasses set ``prompt_name`` to the template under config/prompts/ they
    render their requests from.
    """

    prompt_name: str = ""

    def __init__(
        self,
        llm_client: Optional[AgentSDKClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.llm = llm_client or AgentSDKClient(self.settings)
        self.sections = load_prompt_sections(self.prompt_name) if self.prompt_name else {}

    def _section(self, header: str, **values) -> str:
        """Body of one template section; placeholders are filled only when values are given.

        A section the template lacks renders as an empty string.
        """
        text = self.sections.get(header, "")
        return text.format(**values) if values else text

    @property
    def system_prompt(self) -> str:
        return self._section("System Prompt")
