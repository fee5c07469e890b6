"""
Tests for dataset validation (release gate).

Contract:
- missing files, missing manifest fields and an empty courses array are hard errors
- a detail file without meta is a hard error; other gaps make it invalid
- error rate = (failed courses + invalid detail files) / courseCount * 100
- results end with ::set-output lines for CI
"""

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from duodata.validate import main, validate_dataset


def _manifest(**overrides):
    manifest = {
        "version": "1.0.0",
        "schemaVersion": "1.0.0",
        "scrapedAt": "2026-10-14T12:00:00.000Z",
        "scrapedAtUnix": 1791979200,
        "lastSuccessfulScrape": "2026-10-14T12:00:00.000Z",
        "lastAttemptedScrape": "2026-10-14T12:00:00.000Z",
        "scrapeDurationMs": 1234,
        "courseCount": 2,
        "detailCount": 1,
        "failedCourses": [],
        "checksum": "sha256:0123456789abcdef",
        "source": "https://duolingodata.com/",
        "nextUpdate": "2026-10-18T03:00:00.000Z",
    }
    manifest.update(overrides)
    return manifest


def _catalog(courses=None):
    if courses is None:
        courses = [
            {
                "courseId": "https://duolingodata.com/esfen.html",
                "key": "https://duolingodata.com/esfen.html",
                "title": "English → Spanish",
                "fromLang": "English",
                "toLang": "Spanish",
                "lastUpdated": "2026-10-14T12:00:00.000Z",
                "detailAvailable": True,
            },
            {
                "courseId": "fallback:english::french::B1",
                "key": "fallback:english::french::B1",
                "title": "English → French",
                "fromLang": "English",
                "toLang": "French",
                "lastUpdated": "2026-10-14T12:00:00.000Z",
                "detailAvailable": False,
            },
        ]
    return {
        "meta": {
            "scrapedAt": "2026-10-14T12:00:00.000Z",
            "totalCourses": len(courses),
            "source": "https://duolingodata.com/",
            "schemaVersion": "1.0.0",
        },
        "courses": courses,
    }


def _detail():
    return {
        "meta": {
            "key": "esfen",
            "courseTitle": "English → Spanish",
            "scrapedAt": "2026-10-14T12:00:00.000Z",
            "sourceHash": "sha256:aaaaaaaaaaaaaaaa",
            "detailHref": "https://duolingodata.com/esfen.html",
            "detailHrefHash": "sha256:bbbbbbbbbbbbbbbb",
        },
        "totals": {"sections": 1, "units": 1, "activities": 14, "estimated": False},
        "sections": [],
    }


class ValidateTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.data = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def write(self, name, payload):
        path = self.data / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(payload, str):
            path.write_text(payload, encoding="utf-8")
        else:
            path.write_text(json.dumps(payload), encoding="utf-8")

    def write_dataset(self, manifest=None, catalog=None, details=None):
        self.write("manifest.json", manifest if manifest is not None else _manifest())
        self.write("courses.json", catalog if catalog is not None else _catalog())
        for name, payload in (details if details is not None else {"esfen.json": _detail()}).items():
            self.write(f"courses/{name}", payload)

    def run_main(self, *extra):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            with self.assertRaises(SystemExit) as ctx:
                main(["--data", str(self.data), *extra])
        return ctx.exception.code, out.getvalue(), err.getvalue()


class TestValidateCLI(ValidateTestCase):
    def test_valid_dataset_passes(self) -> None:
        self.write_dataset()
        code, out, err = self.run_main()

        self.assertEqual(code, 0)
        self.assertIn("Validation PASSED", out)
        self.assertIn("::set-output name=passed::true", out)
        self.assertIn("::set-output name=error_count::0", out)
        self.assertIn("::set-output name=error_rate::0.0", out)
        self.assertEqual(err, "")

    def test_missing_checksum_fails(self) -> None:
        manifest = _manifest()
        del manifest["checksum"]
        self.write_dataset(manifest=manifest)
        code, out, err = self.run_main()

        self.assertEqual(code, 1)
        self.assertIn("missing required field: checksum", err.lower())
        self.assertIn("::set-output name=passed::false", out)

    def test_empty_courses_fails(self) -> None:
        self.write_dataset(catalog=_catalog(courses=[]))
        code, _, err = self.run_main()

        self.assertEqual(code, 1)
        self.assertIn("courses array is empty", err)

    def test_missing_files_fail(self) -> None:
        code, _, err = self.run_main()
        self.assertEqual(code, 1)
        self.assertIn("Missing required file: manifest.json", err)
        self.assertIn("Missing required file: courses.json", err)


class TestValidateDataset(ValidateTestCase):
    def test_detail_without_meta_is_an_error(self) -> None:
        broken = _detail()
        del broken["meta"]
        self.write_dataset(details={"esfen.json": broken})
        result = validate_dataset(self.data)

        self.assertFalse(result.passed)
        self.assertIn("esfen.json missing meta object", result.errors)
        self.assertEqual(result.invalid_details, 1)

    def test_error_rate_above_threshold(self) -> None:
        self.write_dataset(manifest=_manifest(courseCount=10, failedCourses=["a", "b"]))
        result = validate_dataset(self.data, error_threshold=10)

        self.assertAlmostEqual(result.error_rate, 20.0)
        self.assertFalse(result.passed)
        self.assertTrue(any("exceeds threshold" in e for e in result.errors))

        relaxed = validate_dataset(self.data, error_threshold=25)
        self.assertTrue(relaxed.passed)

    def test_invalid_detail_counts_toward_error_rate(self) -> None:
        incomplete = _detail()
        incomplete["totals"] = {"sections": "one"}
        self.write_dataset(
            manifest=_manifest(courseCount=4),
            details={"esfen.json": _detail(), "frfen.json": incomplete},
        )
        result = validate_dataset(self.data, error_threshold=50, verbose=True)

        self.assertEqual(result.detail_files, 2)
        self.assertEqual(result.valid_details, 1)
        self.assertEqual(result.invalid_details, 1)
        self.assertAlmostEqual(result.error_rate, 25.0)
        self.assertIn("frfen.json has invalid totals", result.warnings)
        self.assertTrue(result.passed)

    def test_wrong_manifest_types(self) -> None:
        self.write_dataset(manifest=_manifest(courseCount="2", failedCourses="none"))
        result = validate_dataset(self.data)

        self.assertIn("manifest.courseCount must be a number", result.errors)
        self.assertIn("manifest.failedCourses must be an array", result.errors)

    def test_unparseable_manifest(self) -> None:
        self.write_dataset()
        self.write("manifest.json", "{oops")
        result = validate_dataset(self.data)

        self.assertFalse(result.passed)
        self.assertTrue(result.errors[0].startswith("Invalid manifest.json"))

    def test_incomplete_courses_are_warnings(self) -> None:
        catalog = _catalog()
        del catalog["courses"][1]["title"]
        self.write_dataset(catalog=catalog)
        result = validate_dataset(self.data)

        self.assertTrue(result.passed)
        self.assertIn("1 courses have incomplete data", result.warnings)

    def test_missing_courses_dir_is_a_warning(self) -> None:
        self.write_dataset(details={})
        result = validate_dataset(self.data)

        self.assertTrue(result.passed)
        self.assertIn("No courses/ directory found", result.warnings)


if __name__ == "__main__":
    unittest.main()
