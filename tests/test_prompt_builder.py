from comma.config import DEFAULT_TEMPLATE
from comma.prompts import PromptBuilder
from comma.vcs.models import RepositoryContext


def test_default_template_includes_changes():
    prompt = PromptBuilder().build("+new line")

    assert prompt.startswith("Generate a concise and meaningful git commit message")
    assert prompt.endswith("Changes:\n+new line")


def test_hint_appended_when_type_not_mentioned():
    builder = PromptBuilder("Describe:\n{{CHANGES}}")

    prompt = builder.build("+x", commit_type="perf", commit_scope="api")

    assert prompt == "Describe:\n+x\n\nHint: This change appears to be a perf in the api scope."


def test_hint_without_scope():
    prompt = PromptBuilder("{{CHANGES}}").build("+x", commit_type="perf")

    assert prompt.endswith("Hint: This change appears to be a perf.")


def test_no_hint_when_template_mentions_type():
    # The default template already lists feat among the types
    prompt = PromptBuilder(DEFAULT_TEMPLATE).build("+x", commit_type="feat", commit_scope="api")

    assert "Hint:" not in prompt


def test_context_placeholders():
    context = RepositoryContext(
        repo_name="comma",
        branch="main",
        last_commit_message="fix: earlier change\n\nbody",
        recent_messages=["fix: earlier change", "feat: first"],
        project_type="python",
    )
    template = (
        "{{REPO_NAME}} on {{ .Branch }} ({{project_type}})\n"
        "Last: {{LAST_COMMIT}}\n{{RECENT_COMMITS}}\n{{FILES}}\n{{UNKNOWN}}"
    )

    prompt = PromptBuilder(template).build("+x", context, files=["a.py", "b.py"])

    assert prompt == (
        "comma on main (python)\n"
        "Last: fix: earlier change\n"
        "- fix: earlier change\n- feat: first\n"
        "a.py\nb.py\n{{UNKNOWN}}"
    )


def test_empty_template_uses_fallback():
    prompt = PromptBuilder("").build("+x", commit_type="feat", commit_scope="cli")

    assert prompt.startswith("Generate a git commit message for the following changes:")
    assert "This change appears to be a feat in the cli scope." in prompt
    assert "- feat: A new feature" in prompt
    assert prompt.endswith("Changes:\n+x")


def test_malformed_template_uses_fallback():
    prompt = PromptBuilder("Changes: {{CHANGES").build("+x")

    assert prompt.startswith("Generate a git commit message")
    assert "This change appears" not in prompt
