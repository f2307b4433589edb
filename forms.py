from typing import List, Optional

from pydantic import BaseModel

from schemas import ProjectCategory, ProjectCreate

CREATE_ERROR = "Erro ao criar projeto. Tente novamente."
CREATE_SUCCESS = "✓ Projeto criado com sucesso!"
LOGIN_MISSING_FIELDS = "Preencha todos os campos."


def split_stack(text: str) -> List[str]:
    """Comma separated text to trimmed tags, e.g. "Docker, Python,  Bash" -> ["Docker", "Python", "Bash"]."""
    return [s.strip() for s in text.split(",") if s.strip()]


def _blank_to_none(value: str) -> Optional[str]:
    value = value.strip()
    return value or None


class ProjectForm(BaseModel):
    """Raw fields of the dashboard's new-project form."""

    title: str = ""
    description: str = ""
    long_description: str = ""
    stack: str = ""  # comma separated
    category: ProjectCategory = "devops"
    github_url: str = ""
    demo_url: str = ""
    image_url: str = ""
    featured: bool = False

    def first_error(self) -> Optional[str]:
        if not self.title.strip():
            return "O título é obrigatório."
        if not self.description.strip():
            return "A descrição é obrigatória."
        if not split_stack(self.stack):
            return "Informe pelo menos uma tecnologia."
        return None

    def to_payload(self) -> ProjectCreate:
        return ProjectCreate(
            title=self.title.strip(),
            description=self.description.strip(),
            long_description=_blank_to_none(self.long_description),
            stack=split_stack(self.stack),
            category=self.category,
            github_url=_blank_to_none(self.github_url),
            demo_url=_blank_to_none(self.demo_url),
            image_url=_blank_to_none(self.image_url),
            featured=self.featured,
        )
