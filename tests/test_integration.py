"""Integration tests for quizembed.

These tests exercise complete workflows from Markdown sources to
expanded documents.
"""

import json

import pytest
from click.testing import CliRunner

from quizembed import DefinitionIOError, PreprocessorConfig, rewrite_markdown
from quizembed.cli import main
from quizembed.config import CONFIG_FILENAME
from quizembed.encoder import decode_metadata
from quizembed.placeholder import extract_placeholders

EXPECTED_PLACEHOLDER = (
    '<quiz-placeholder quiz-name="geo" quiz-questions="{'
    "&quot;name&quot;:&quot;Capitals&quot;,"
    "&quot;questions&quot;:[{&quot;prompt&quot;:&quot;Capital of France?&quot;,"
    "&quot;answer&quot;:&quot;Paris&quot;}]}"
    '" quiz-fullscreen=""></quiz-placeholder>'
)


@pytest.fixture
def book(tmp_path):
    """book/ch1.md referencing book/geo.toml."""
    book = tmp_path / "book"
    book.mkdir()
    (book / "geo.toml").write_text(
        'name = "Capitals"\n'
        'questions = [{ prompt = "Capital of France?", answer = "Paris" }]\n'
    )
    (book / "ch1.md").write_text('{{#quiz "geo.toml"}}\n')
    return book


class TestChapterExpansion:
    """Expanding a single chapter end to end."""

    def test_expected_output_line(self, book):
        """Test the exact placeholder produced for the geography quiz."""
        source = book / "ch1.md"

        result = rewrite_markdown(
            source.read_text(), source, PreprocessorConfig(fullscreen=True)
        )

        assert result == EXPECTED_PLACEHOLDER + "\n"

    def test_missing_quiz_produces_no_output(self, book, tmp_path):
        """Test a missing file fails the chapter and writes nothing."""
        (book / "ch1.md").write_text("# Ch\n\n{{#quiz absent.toml}}\n")
        out = tmp_path / "out"

        result = CliRunner().invoke(main, ["expand", str(book), "-d", str(out)])

        assert result.exit_code == 1
        assert "absent.toml" in result.output
        assert not (out / "ch1.md").exists()

    def test_missing_quiz_error_type(self, book):
        """Test the error raised for a missing file."""
        with pytest.raises(DefinitionIOError, match="absent.toml"):
            rewrite_markdown("{{#quiz absent.toml}}\n", book / "ch1.md")


class TestBookWorkflow:
    """Expanding a whole book the way mdBook drives it."""

    def test_mdbook_round_trip(self, tmp_path):
        """Test a multi-chapter book through the preprocessor protocol."""
        src = tmp_path / "src"
        (src / "rust").mkdir(parents=True)
        (src / "rust" / "ownership.toml").write_text(
            """
[[questions]]
type = "ShortAnswer"
prompt.prompt = 'What does "move" mean?'
answer.answer = "transfer"

[[questions]]
type = "MultipleChoice"
prompt.prompt = "Pick one"
prompt.distractors = []
answer.answer = ["a", "b"]
"""
        )
        chapter_text = "# Ownership\n\nRead first.\n\n{{#quiz ownership.toml}}\n"
        context = {
            "root": str(tmp_path),
            "config": {
                "book": {"src": "src"},
                "preprocessor": {
                    "quiz": {"log-endpoint": "https://log.example.com/?a=1&b=2"}
                },
            },
            "renderer": "html",
            "mdbook_version": "0.4.40",
        }
        book = {
            "sections": [
                {
                    "Chapter": {
                        "name": "Intro",
                        "content": "# Intro\n",
                        "number": [1],
                        "sub_items": [
                            {
                                "Chapter": {
                                    "name": "Ownership",
                                    "content": chapter_text,
                                    "number": [1, 1],
                                    "sub_items": [],
                                    "path": "rust/ownership.md",
                                    "source_path": "rust/ownership.md",
                                    "parent_names": ["Intro"],
                                }
                            }
                        ],
                        "path": "intro.md",
                        "source_path": "intro.md",
                        "parent_names": [],
                    }
                }
            ],
            "__non_exhaustive": None,
        }

        result = CliRunner().invoke(main, [], input=json.dumps([context, book]))

        assert result.exit_code == 0
        out = json.loads(result.stdout)
        intro = out["sections"][0]["Chapter"]
        assert intro["content"] == "# Intro\n"
        ownership = intro["sub_items"][0]["Chapter"]["content"]
        assert ownership.startswith("# Ownership\n\nRead first.\n\n")

        [attrs] = extract_placeholders(ownership)
        assert attrs["quiz-name"] == "ownership"
        assert attrs["quiz-log-endpoint"] == "https://log.example.com/?a=1&b=2"
        questions = decode_metadata(attrs["quiz-questions"])["questions"]
        assert questions[0]["prompt"]["prompt"] == 'What does "move" mean?'
        assert questions[1]["prompt"]["distractors"] == []
        assert questions[1]["answer"]["answer"] == ["a", "b"]

    def test_config_file_and_cli_workflow(self, tmp_path, monkeypatch):
        """Test init, check and expand against one book directory."""
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()
        src = tmp_path / "src"
        src.mkdir()
        (src / "q.yaml").write_text("questions:\n  - prompt: Two plus two?\n    answer: 4\n")
        (src / "ch.md").write_text("# Maths\n\n{{#quiz q.yaml}}\n")

        assert runner.invoke(main, ["config", "init"]).exit_code == 0
        config_path = tmp_path / CONFIG_FILENAME
        config_path.write_text(config_path.read_text() + "fullscreen: false\n")

        check = runner.invoke(main, ["check", "src"])
        assert check.exit_code == 0

        expand = runner.invoke(main, ["expand", "src"])
        assert expand.exit_code == 0

        [attrs] = extract_placeholders((tmp_path / "_expanded" / "ch.md").read_text())
        assert attrs["quiz-name"] == "q"
        assert attrs["quiz-fullscreen"] == ""
        assert decode_metadata(attrs["quiz-questions"]) == {
            "questions": [{"prompt": "Two plus two?", "answer": 4}]
        }
