from flagstore.version import version_string


def test_version_string():
    version = version_string()
    assert len(version) > 0


def test_version_string_is_dotted_numbers():
    parts = version_string().split(".")
    assert len(parts) == 3
    assert [part.isdigit() for part in parts] == [True, True, True]