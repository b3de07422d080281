from extension_bridge import extract_page
from extension_bridge.extractor import extract_code, extract_description, extract_difficulty
from bs4 import BeautifulSoup

PAGE = """
<html><body>
  <h1 data-cy="question-title">1. Two Sum</h1>
  <div class="question-content">
    <p>Given an array of integers   nums and an integer target,
    return indices of the two numbers such that they add up to target.</p>
  </div>
  <div class="difficulty-badge"> Easy </div>
  <div class="monaco-editor">
    <div class="view-lines"><div class="view-line">class Solution:</div><div class="view-line">    def twoSum(self, nums, target):</div></div>
  </div>
</body></html>
"""


def _soup(html):
    return BeautifulSoup(html, "html.parser")


def test_extract_page_reads_all_fields():
    payload = extract_page(PAGE, url="https://leetcode.com/problems/two-sum/")
    assert payload is not None
    assert payload.problem_title == "1. Two Sum"
    assert payload.problem_description.startswith("Given an array of integers nums and an integer target, return")
    assert payload.editor_code == "class Solution:\n    def twoSum(self, nums, target):"
    assert payload.difficulty == "easy"
    assert payload.url == "https://leetcode.com/problems/two-sum/"
    assert payload.timestamp


def test_extract_page_without_title_is_none():
    assert extract_page("<div>nothing here</div>") is None
    assert extract_page("") is None


def test_short_description_is_ignored():
    assert extract_description(_soup('<div class="question-content">Too short.</div>')) == ""


def test_code_falls_back_to_textarea_value():
    html = '<h1>T</h1><textarea data-cy="code-editor">x = 1</textarea>'
    assert extract_code(_soup(html)) == "x = 1"
    assert extract_code(_soup("<p>no editor</p>")) == ""


def test_code_from_codemirror():
    html = '<div class="CodeMirror-code">function solve(nums) { return nums; }</div>'
    assert extract_code(_soup(html)) == "function solve(nums) { return nums; }"


def test_difficulty_must_be_known_value():
    assert extract_difficulty(_soup('<span data-difficulty="x">Very Hard</span>')) == ""
    assert extract_difficulty(_soup('<span class="css-t42afm">Medium</span>')) == "medium"
