"""Hard-coded page content: nav, hero, skills and the about page."""
from typing import Dict, List

from schemas import PROJECT_CATEGORIES, Skill

NAV_LINKS = [
    {"label": "início", "path": "/"},
    {"label": "projetos", "path": "/projects"},
    {"label": "sobre", "path": "/about"},
]

HERO_ROLES = [
    "DevOps Engineer",
    "Software Engineer",
    "Automation Developer",
    "CI/CD Enthusiast",
]

# Levels 0-100
SKILLS: List[Skill] = [
    Skill(name="Python", level=80, category="languages", icon="🐍"),
    Skill(name="TypeScript", level=70, category="languages", icon="📘"),
    Skill(name="Bash", level=75, category="languages", icon="💻"),
    Skill(name="Docker", level=75, category="devops", icon="🐳"),
    Skill(name="GitHub Actions", level=80, category="devops", icon="⚙️"),
    Skill(name="Linux", level=70, category="devops", icon="🐧"),
    Skill(name="Vercel", level=85, category="cloud", icon="▲"),
    Skill(name="AWS", level=50, category="cloud", icon="☁️"),
    Skill(name="PostgreSQL", level=65, category="databases", icon="🐘"),
    Skill(name="Supabase", level=70, category="databases", icon="⚡"),
    Skill(name="Git", level=85, category="tools", icon="🔀"),
    Skill(name="VSCode", level=90, category="tools", icon="📝"),
]

TIMELINE = [
    {
        "year": "2024",
        "title": "Início na área de DevOps",
        "description": "Primeiros contatos com Docker, CI/CD e automação de pipelines.",
        "icon": "🚀",
    },
    {
        "year": "2023",
        "title": "Ingresso na faculdade",
        "description": "Início do curso de Engenharia de Software. Primeiros passos com Python e lógica de programação.",
        "icon": "🎓",
    },
    {
        "year": "2023",
        "title": "Primeiro projeto open source",
        "description": "Contribuição para projetos no GitHub e criação dos primeiros scripts de automação.",
        "icon": "💻",
    },
]

VALUES = [
    {"icon": "⚙️", "title": "Automação", "desc": "Se pode ser automatizado, deve ser."},
    {"icon": "📖", "title": "Aprendizado", "desc": "Sempre há algo novo para aprender."},
    {"icon": "🔍", "title": "Qualidade", "desc": "Código que funciona e é fácil de manter."},
    {"icon": "🤝", "title": "Colaboração", "desc": "Os melhores produtos nascem em equipe."},
]

QUICK_INFO = [
    {"label": "localização", "value": "Brasil 🇧🇷"},
    {"label": "curso", "value": "Engenharia de Software"},
    {"label": "foco", "value": "DevOps & Automação"},
    {"label": "status", "value": "🟢 disponível para estágio"},
    {"label": "email", "value": "seu@email.com"},
]

# "todos" first, then one chip per category
PROJECT_FILTERS = [{"label": "todos", "value": None}] + [{"label": c, "value": c} for c in PROJECT_CATEGORIES]


def group_skills(skills: List[Skill]) -> Dict[str, List[Skill]]:
    """Group by category, keeping the order categories first appear in."""
    grouped: Dict[str, List[Skill]] = {}
    for skill in skills:
        grouped.setdefault(skill.category, []).append(skill)
    return grouped


def is_active(path: str, current: str) -> bool:
    if path == "/":
        return current == "/"
    return current.startswith(path)
