"""Toy terminal for the home page.

Purely local: a fixed command table, a line history and an optional async
sink that receives every change as a JSON-ready dict.
"""
import asyncio
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel

WELCOME = 'Bem-vinda ao terminal! Digite "help" para começar.'

COMMANDS: Dict[str, List[str]] = {
    "help": [
        "📋 Comandos disponíveis:",
        "  whoami      → quem sou eu",
        "  skills      → minhas habilidades",
        "  projects    → meus projetos",
        "  contact     → como me contatar",
        "  clear       → limpar terminal",
    ],
    "whoami": [
        "👩‍💻 Brenda G.",
        "   Estudante de Engenharia de Software",
        "   Especialidade: DevOps & Automação",
        "   Status: Buscando estágio 🚀",
    ],
    "skills": [
        "🛠️  Stack técnica:",
        "   Languages  → Python, TypeScript, Bash",
        "   DevOps     → Docker, GitHub Actions, Linux",
        "   Cloud      → Vercel, AWS (básico)",
        "   Databases  → PostgreSQL, Redis",
    ],
    "projects": [
        "📁 Projetos em destaque:",
        "   [1] Pipeline CI/CD com GitHub Actions",
        "   [2] Sistema de monitoramento com Python",
        "   [3] Automação de deploy com Docker",
        "   → acesse /projects para ver todos",
    ],
    "contact": [
        "📬 Contato:",
        "   GitHub   → github.com/seu-usuario",
        "   LinkedIn → linkedin.com/in/seu-usuario",
        "   Email    → seu@email.com",
    ],
}


class LineKind(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    ERROR = "error"
    SUCCESS = "success"


class TerminalLine(BaseModel):
    kind: LineKind
    text: str


TerminalSink = Callable[[dict], Awaitable[None]]


def not_found_message(command: str) -> str:
    return f'comando não encontrado: "{command}". Digite "help".'


class Terminal:
    def __init__(
        self,
        delay: float = 0.05,
        sink: Optional[TerminalSink] = None,
        commands: Optional[Dict[str, List[str]]] = None,
    ):
        self.delay = delay
        self.history: List[TerminalLine] = [TerminalLine(kind=LineKind.OUTPUT, text=WELCOME)]
        self._commands = COMMANDS if commands is None else commands
        self._sink = sink
        # one command's output finishes before the next one starts
        self._lock = asyncio.Lock()

    async def _append(self, kind: LineKind, text: str) -> None:
        line = TerminalLine(kind=kind, text=text)
        self.history.append(line)
        if self._sink is not None:
            await self._sink({"type": "line", **line.model_dump(mode="json")})

    async def _clear(self) -> None:
        self.history.clear()
        if self._sink is not None:
            await self._sink({"type": "clear"})

    async def execute(self, raw: str) -> None:
        text = raw.strip().lower()
        # blank input leaves history untouched: no "$ " echo either
        if not text:
            return

        async with self._lock:
            await self._append(LineKind.INPUT, f"$ {text}")

            if text == "clear":
                await self._clear()
                return

            response = self._commands.get(text)
            if response is None:
                await self._append(LineKind.ERROR, not_found_message(text))
                return

            for i, line in enumerate(response):
                if i and self.delay:
                    await asyncio.sleep(self.delay)
                await self._append(LineKind.OUTPUT, line)
