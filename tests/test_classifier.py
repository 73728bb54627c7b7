"""
Test cases for the Gemini grass classifier with the SDK mocked out.
"""
import unittest
import sys
from pathlib import Path
from unittest import mock

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from touchgrass import classifier as classifier_module
from touchgrass.errors import ClassifierError


class TestGeminiGrassClassifier(unittest.TestCase):
    """Test request building and reply handling."""

    def setUp(self):
        patcher = mock.patch.object(classifier_module, "genai")
        self.genai = patcher.start()
        self.addCleanup(patcher.stop)
        self.model = self.genai.GenerativeModel.return_value

    def test_sends_prompt_and_jpeg(self):
        """Prompt and inline JPEG are sent together."""
        self.model.generate_content.return_value.text = "YES 85%"
        clf = classifier_module.GeminiGrassClassifier("key", "gemini-2.5-flash")

        reply = clf.classify("is there grass?", "aGVsbG8=")

        self.assertEqual(reply, "YES 85%")
        self.genai.configure.assert_called_once_with(api_key="key")
        self.genai.GenerativeModel.assert_called_once_with("gemini-2.5-flash")
        parts = self.model.generate_content.call_args[0][0]
        self.assertEqual(parts[0], {"text": "is there grass?"})
        self.assertEqual(parts[1]["inline_data"]["mime_type"], "image/jpeg")
        self.assertEqual(parts[1]["inline_data"]["data"], "aGVsbG8=")

    def test_request_timeout_forwarded(self):
        """The attempt timeout bounds the HTTP request too."""
        self.model.generate_content.return_value.text = "NO 3%"
        clf = classifier_module.GeminiGrassClassifier("key", timeout_s=10.0)

        clf.classify("is there grass?", "aGVsbG8=")

        kwargs = self.model.generate_content.call_args[1]
        self.assertEqual(kwargs["request_options"], {"timeout": 10.0})

    def test_empty_reply_is_an_error(self):
        """An empty reply raises so the gate can retry."""
        self.model.generate_content.return_value.text = ""
        clf = classifier_module.GeminiGrassClassifier("key")

        with self.assertRaises(ClassifierError):
            clf.classify("is there grass?", "aGVsbG8=")

    def test_no_api_key_disables_classifier(self):
        """Without a key no classifier is built."""
        with mock.patch.object(classifier_module, "load_api_key", return_value=None):
            self.assertIsNone(classifier_module.create_classifier("gemini-2.5-flash"))
        self.genai.configure.assert_not_called()

    def test_api_key_builds_classifier(self):
        """With a key the classifier is configured."""
        with mock.patch.object(classifier_module, "load_api_key", return_value="key"):
            clf = classifier_module.create_classifier("gemini-2.5-flash")
        self.assertIsInstance(clf, classifier_module.GeminiGrassClassifier)


if __name__ == '__main__':
    unittest.main()
