from __future__ import annotations

import unittest

from ejbpack.selector import PatternSet, SelectionPolicy, is_effectively_unset, resolve


DEFAULT_INCLUDES = ["**/**"]
DEFAULT_EXCLUDES = ["**/*Bean.class", "**/package.html"]


class ResolveTests(unittest.TestCase):
    def test_defaults_used_when_user_lists_absent(self) -> None:
        result = resolve(None, None, DEFAULT_INCLUDES, DEFAULT_EXCLUDES)
        self.assertEqual(result, PatternSet(("**/**",), ("**/*Bean.class", "**/package.html")))

    def test_empty_lists_behave_like_absent(self) -> None:
        self.assertEqual(
            resolve([], [], DEFAULT_INCLUDES, DEFAULT_EXCLUDES),
            resolve(None, None, DEFAULT_INCLUDES, DEFAULT_EXCLUDES),
        )

    def test_user_excludes_replace_defaults_entirely(self) -> None:
        result = resolve(None, ["**/*Impl.class"], DEFAULT_INCLUDES, DEFAULT_EXCLUDES)
        self.assertEqual(result.excludes, ("**/*Impl.class",))
        self.assertNotIn("**/package.html", result.excludes)
        self.assertEqual(result.includes, ("**/**",))

    def test_user_includes_leave_default_excludes_in_place(self) -> None:
        result = resolve(["com/acme/api/**"], None, DEFAULT_INCLUDES, DEFAULT_EXCLUDES)
        self.assertEqual(result.includes, ("com/acme/api/**",))
        self.assertEqual(result.excludes, tuple(DEFAULT_EXCLUDES))

    def test_user_lists_are_returned_verbatim_in_order(self) -> None:
        includes = ["b/**", "a/**", "b/**"]
        excludes = ["z", "y"]
        result = resolve(includes, excludes, DEFAULT_INCLUDES, DEFAULT_EXCLUDES)
        self.assertEqual(result.includes, ("b/**", "a/**", "b/**"))
        self.assertEqual(result.excludes, ("z", "y"))

    def test_is_effectively_unset(self) -> None:
        self.assertTrue(is_effectively_unset(None))
        self.assertTrue(is_effectively_unset([]))
        self.assertTrue(is_effectively_unset(()))
        self.assertFalse(is_effectively_unset(["**"]))


class SelectionPolicyTests(unittest.TestCase):
    def test_requires_default_includes(self) -> None:
        with self.assertRaises(ValueError):
            SelectionPolicy(default_includes=())

    def test_policy_resolves_like_function(self) -> None:
        policy = SelectionPolicy(
            default_includes=("**/**",),
            default_excludes=("**/package.html",),
            user_excludes=("**/*.txt",),
        )
        self.assertEqual(policy.resolve(), PatternSet(("**/**",), ("**/*.txt",)))


if __name__ == "__main__":
    unittest.main()
