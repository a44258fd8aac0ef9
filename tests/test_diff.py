from sahayak.diff import unified_error, unified_overwrite, unified_replace


def test_replace_single_line_with_context():
    diff = unified_replace("f.txt", "A\nB\nC", "B", "X", 1)
    assert diff == "--- f.txt\n+++ f.txt\n@@ -1,3 +1,3 @@\n A\n-B\n+X\n C\n"


def test_replace_context_is_clamped_at_file_start_and_end():
    content = "one\ntwo\nthree"
    diff = unified_replace("f.txt", content, "one", "uno", 5)
    lines = diff.splitlines()
    assert lines[2] == "@@ -1,3 +1,3 @@"
    assert lines[3:] == ["-one", "+uno", " two", " three"]


def test_replace_multiline_counts_old_and_new_independently():
    content = "a\nb\nc\nd\ne\nf\ng"
    diff = unified_replace("f.txt", content, "c\nd", "C", 2)
    lines = diff.splitlines()
    # two lines of context each side; old block is 2 lines, new block is 1
    assert lines[2] == "@@ -1,6 +1,5 @@"
    assert lines[3:] == [" a", " b", "-c", "-d", "+C", " e", " f"]


def test_replace_in_middle_of_long_file_starts_hunk_after_context():
    content = "\n".join(f"line{i}" for i in range(20))
    diff = unified_replace("big.py", content, "line10", "changed", 3)
    lines = diff.splitlines()
    assert lines[2] == "@@ -8,7 +8,7 @@"
    assert lines[3] == " line7"
    assert lines[-1] == " line13"


def test_replace_with_zero_context():
    diff = unified_replace("f.txt", "A\nB\nC", "B", "X", 0)
    assert diff.splitlines()[2:] == ["@@ -2,1 +2,1 @@", "-B", "+X"]


def test_replace_not_found_returns_stub():
    diff = unified_replace("f.txt", "hello", "missing", "new", 3)
    assert diff == (
        "--- f.txt\n+++ f.txt\n@@ -0,0 +0,0 @@\n"
        "! Note: the specified old_string was not found; the operation will fail.\n"
        "- missing\n+ new\n"
    )


def test_replace_ambiguous_returns_stub_with_count():
    diff = unified_replace("f.txt", "x = 1\nx = 1\nx = 1", "x = 1", "x = 2", 3)
    assert "@@ -0,0 +0,0 @@" in diff
    assert "! Note: the specified old_string appears 3 times; operation requires a unique match." in diff
    assert "\n-x = 1\n" not in diff


def test_overwrite_whole_file():
    diff = unified_overwrite("f.txt", "a\nb", "c")
    assert diff == "--- f.txt\n+++ f.txt\n@@ -1,2 +1,1 @@\n-a\n-b\n+c\n"


def test_overwrite_new_file_has_no_removals():
    diff = unified_overwrite("new.txt", "", "hello\nworld")
    assert diff.splitlines()[2:] == ["@@ -1,0 +1,2 @@", "+hello", "+world"]


def test_overwrite_to_empty_has_no_additions():
    diff = unified_overwrite("gone.txt", "bye", "")
    assert diff.splitlines()[2:] == ["@@ -1,1 +1,0 @@", "-bye"]


def test_error_stub_carries_message():
    diff = unified_error("f.txt", "Error reading file 'f.txt': denied", "old", "new")
    assert diff == "--- f.txt\n+++ f.txt\n@@ -0,0 +0,0 @@\n! Error reading file 'f.txt': denied\n- old\n+ new\n"
