import unittest

from core.allowlist import AllowList, compile_pattern
from core.config import AllowListSettings


class CompilePatternTest(unittest.TestCase):

    def test_wildcard_matches_any_run(self):
        regex = compile_pattern("*.akamai.net")
        self.assertTrue(regex.search("https://a1.akamai.net/x"))
        self.assertTrue(regex.search("https://x.y.akamai.net/"))

    def test_literal_dots(self):
        self.assertFalse(compile_pattern("alicdn.com").search("https://alicdnxcom.net/"))

    def test_wildcard_matches_empty(self):
        self.assertTrue(compile_pattern("ali*cdn.com").search("https://alicdn.com/"))


class AllowListTest(unittest.TestCase):

    def test_substring_semantics(self):
        allow_list = AllowList.from_patterns(["alicdn.com"])
        self.assertTrue(allow_list.allows("https://ae01.alicdn.com/x.png"))
        # Unanchored search: a lookalike host still passes
        self.assertTrue(allow_list.allows("https://alicdn.com.attacker.net/x.png"))
        self.assertTrue(allow_list.allows("https://evil.com/?next=alicdn.com"))
        self.assertFalse(allow_list.allows("https://evil.com/x.png"))

    def test_anchored_semantics(self):
        allow_list = AllowList.from_patterns(["alicdn.com", "*.alicdn.com"], anchored=True)
        self.assertTrue(allow_list.allows("https://alicdn.com/x.png"))
        self.assertTrue(allow_list.allows("https://AE01.alicdn.com/x.png"))
        self.assertFalse(allow_list.allows("https://alicdn.com.attacker.net/x.png"))
        self.assertFalse(allow_list.allows("https://evil-alicdn.com/x.png"))
        self.assertFalse(allow_list.allows("https://evil.com/?next=alicdn.com"))

    def test_empty_allows_nothing(self):
        allow_list = AllowList.from_patterns(["", "  "])
        self.assertEqual(allow_list.patterns, ())
        self.assertFalse(allow_list.allows("https://ae01.alicdn.com/x.png"))

    def test_from_settings(self):
        self.assertIsNone(AllowList.from_settings(AllowListSettings(enabled=False)))
        allow_list = AllowList.from_settings(AllowListSettings())
        self.assertEqual(allow_list.patterns, ("alicdn.com", "aliexpress.com", "*.akamai.net"))
        self.assertFalse(allow_list.anchored)

    def test_case_insensitive_in_both_modes(self):
        url = "https://AE01.ALICDN.COM/x.png"
        self.assertTrue(AllowList.from_patterns(["alicdn.com"]).allows(url))
        self.assertTrue(AllowList.from_patterns(["*.alicdn.com"], anchored=True).allows(url))
        self.assertTrue(AllowList.from_patterns(["*.Akamai.net"]).allows("https://cdn1.akamai.NET/x"))
