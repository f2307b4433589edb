import pytest

from forms import ProjectForm, split_stack


def test_split_stack_trims_and_drops_empty_entries():
    assert split_stack("Docker, Python,  Bash") == ["Docker", "Python", "Bash"]
    assert split_stack("Docker,, ,Linux,") == ["Docker", "Linux"]
    assert split_stack("   ") == []


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"description": "d", "stack": "Go"}, "O título é obrigatório."),
        ({"title": "  ", "description": "d", "stack": "Go"}, "O título é obrigatório."),
        ({"title": "t", "stack": "Go"}, "A descrição é obrigatória."),
        ({"title": "t", "description": "d"}, "Informe pelo menos uma tecnologia."),
        ({"title": "t", "description": "d", "stack": " , ,"}, "Informe pelo menos uma tecnologia."),
    ],
)
def test_first_error(fields, message):
    assert ProjectForm(**fields).first_error() == message


def test_valid_form_becomes_payload():
    form = ProjectForm(
        title="Deploy bot",
        description="Ships containers",
        stack="Docker, Python,  Bash",
        category="automation",
        github_url="https://github.com/x/deploy-bot",
        demo_url="  ",
        featured=True,
    )

    assert form.first_error() is None
    payload = form.to_payload()
    assert payload.stack == ["Docker", "Python", "Bash"]
    assert payload.category == "automation"
    assert payload.github_url == "https://github.com/x/deploy-bot"
    assert payload.demo_url is None
    assert payload.long_description is None
    assert payload.featured is True


def test_checkbox_value_parses_as_featured():
    assert ProjectForm(featured="on").featured is True
    assert ProjectForm().featured is False
