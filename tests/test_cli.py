"""
Tests for the command line entry point.
"""

import inspect
import json
from typing import List, Optional

from structurescan import cli
from structurescan.cli import load_assessment, main, parse_args


def write_assessment(path, **overrides):
    data = {
        "assessment_name": "Garage",
        "date": "May 1, 2025",
        "overall_risk": "Moderate Risk",
        "total_issues": 2,
        "crack_moderate": 1,
        "paint": 1,
        "images": ["content://does/not/exist.jpg"],
    }
    data.update(overrides)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestCli:
    """Tests for structurescan-report."""

    def test_parse_args(self, temp_dir):
        args = parse_args([str(temp_dir / "in.json"), "--output", "out.pdf", "--no-page-numbers"])
        assert args.output.name == "out.pdf"
        assert args.no_page_numbers

    def test_load_assessment(self, temp_dir):
        report = load_assessment(write_assessment(temp_dir / "in.json"))
        assert report.assessment_name == "Garage"
        assert report.images[0].url == "content://does/not/exist.jpg"

    def test_writes_report(self, temp_dir):
        source = write_assessment(temp_dir / "in.json")
        output = temp_dir / "nested" / "garage.pdf"

        assert main([str(source), "--output", str(output)]) == 0
        assert output.read_bytes().startswith(b"%PDF-")

    def test_missing_input(self, temp_dir, capsys):
        assert main([str(temp_dir / "absent.json")]) == 1
        assert "Input Error" in capsys.readouterr().out

    def test_invalid_json(self, temp_dir):
        source = temp_dir / "in.json"
        source.write_text("{not json", encoding="utf-8")
        assert main([str(source)]) == 1

    def test_invalid_assessment(self, temp_dir):
        source = write_assessment(temp_dir / "in.json", paint=-3)
        output = temp_dir / "out.pdf"

        assert main([str(source), "--output", str(output)]) == 1
        assert not output.exists()

    def test_module_documents_usage(self):
        assert "structurescan-report" in cli.__doc__

    def test_argv_annotations_are_runtime_types(self):
        """Annotations resolve to typing objects, not postponed strings."""
        for func in (parse_args, main):
            assert inspect.signature(func).parameters["argv"].annotation == Optional[List[str]]
