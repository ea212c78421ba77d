"""
Shared sample documents for the filing pipeline tests.
"""

import pytest

from filing_pipeline.parse.registry import FilingTypeRegistry


# ─── Sample Documents ───

CURRENT_REPORT_HTML = """<html>
<head><title>ACME Corp: Current Report</title></head>
<body>
<h2>Item 8.01 Other Events</h2>
<p>On March 1, 2024 the company announced a new product line.</p>
</body>
</html>"""

FORM4_HTML = """<html>
<head><title>Statement of Changes in Beneficial Ownership</title></head>
<body>
<h2>Reporting Owner</h2>
<p>Jane Doe, Chief Executive Officer</p>
<h2>Table I - Non-Derivative Securities Acquired, Disposed of, or Beneficially Owned</h2>
<table>
<tr><th>Title of Security</th><th>Date</th><th>Amount</th></tr>
<tr><td>Common Stock</td><td>2024-03-01</td><td>1,000</td></tr>
</table>
<h2>Table II - Derivative Securities Acquired, Disposed of, or Beneficially Owned</h2>
<table>
<tr><th>Title of Derivative Security</th><th>Exercise Price</th></tr>
<tr><td>Stock Option</td><td>$10.00</td></tr>
</table>
</body>
</html>"""

ANNUAL_REPORT_HTML = """<html>
<head>
<title>ACME Corp: Annual Report</title>
<style>p { margin: 0; }</style>
<script>var tracking = 1;</script>
</head>
<body>
<div class="edgar-header">EDGAR FILER HEADER</div>
<p>Intro paragraph before headings.</p>
<h1>Item 1. Business</h1>
<p>We make   widgets.</p>
<h2>Products</h2>
<p>Widgets and gadgets.</p>
<ul><li>Widget</li><li>Gadget</li></ul>
<h1>Item 7. Management's Discussion and Analysis</h1>
<p>Revenue grew.</p>
<table>
<caption>Income Statement</caption>
<tr><th>Metric</th><th>2023</th></tr>
<tr><td>Revenue</td><td>$1,000</td></tr>
</table>
<h1>Exhibits</h1>
</body>
</html>"""

XBRL_INSTANCE = """<?xml version="1.0" encoding="UTF-8"?>
<xbrli:xbrl xmlns:xbrli="http://www.xbrl.org/2003/instance"
            xmlns:us-gaap="http://fasb.org/us-gaap/2023"
            xmlns:dei="http://xbrl.sec.gov/dei/2023"
            xmlns:iso4217="http://www.xbrl.org/2003/iso4217">
  <xbrli:context id="FY2023">
    <xbrli:entity>
      <xbrli:identifier scheme="http://www.sec.gov/CIK">0000320193</xbrli:identifier>
    </xbrli:entity>
    <xbrli:period>
      <xbrli:startDate>2023-01-01</xbrli:startDate>
      <xbrli:endDate>2023-12-31</xbrli:endDate>
    </xbrli:period>
  </xbrli:context>
  <xbrli:context id="AsOf2023">
    <xbrli:entity>
      <xbrli:identifier scheme="http://www.sec.gov/CIK">0000320193</xbrli:identifier>
    </xbrli:entity>
    <xbrli:period>
      <xbrli:instant>2023-12-31</xbrli:instant>
    </xbrli:period>
  </xbrli:context>
  <xbrli:unit id="USD">
    <xbrli:measure>iso4217:USD</xbrli:measure>
  </xbrli:unit>
  <dei:DocumentType contextRef="FY2023">10-K</dei:DocumentType>
  <dei:EntityRegistrantName contextRef="FY2023">ACME Corp</dei:EntityRegistrantName>
  <dei:EntityCentralIndexKey contextRef="FY2023">0000320193</dei:EntityCentralIndexKey>
  <dei:DocumentPeriodEndDate contextRef="FY2023">2023-12-31</dei:DocumentPeriodEndDate>
  <dei:DocumentFiscalYearFocus contextRef="FY2023">2023</dei:DocumentFiscalYearFocus>
  <dei:DocumentFiscalPeriodFocus contextRef="FY2023">FY</dei:DocumentFiscalPeriodFocus>
  <us-gaap:Revenues contextRef="FY2023" unitRef="USD" decimals="-6">383285000000</us-gaap:Revenues>
  <us-gaap:NetIncomeLoss contextRef="FY2023" unitRef="USD" decimals="-6">96995000000</us-gaap:NetIncomeLoss>
  <us-gaap:Assets contextRef="AsOf2023" unitRef="USD" decimals="-6">352583000000</us-gaap:Assets>
</xbrli:xbrl>"""

INLINE_XBRL = """<html xmlns="http://www.w3.org/1999/xhtml" xmlns:ix="http://www.xbrl.org/2013/inlineXBRL" xmlns:xbrli="http://www.xbrl.org/2003/instance" xmlns:us-gaap="http://fasb.org/us-gaap/2023" xmlns:dei="http://xbrl.sec.gov/dei/2023">
<head><title>ACME Corp 10-K</title></head>
<body>
<div style="display:none">
<ix:header><ix:resources>
<xbrli:context id="FY2023">
<xbrli:entity><xbrli:identifier scheme="http://www.sec.gov/CIK">0000320193</xbrli:identifier></xbrli:entity>
<xbrli:period><xbrli:startDate>2023-01-01</xbrli:startDate><xbrli:endDate>2023-12-31</xbrli:endDate></xbrli:period>
</xbrli:context>
<xbrli:unit id="USD"><xbrli:measure>iso4217:USD</xbrli:measure></xbrli:unit>
</ix:resources></ix:header>
</div>
<p>Document type: <ix:nonNumeric name="dei:DocumentType" contextRef="FY2023">10-K</ix:nonNumeric></p>
<p>Registrant: <ix:nonNumeric name="dei:EntityRegistrantName" contextRef="FY2023">ACME Corp</ix:nonNumeric></p>
<h2>Item 7. Management's Discussion and Analysis</h2>
<p>Total revenues were $<ix:nonFraction name="us-gaap:Revenues" contextRef="FY2023" unitRef="USD" decimals="-6" scale="6">383,285</ix:nonFraction> million.</p>
<p>Net loss was $<ix:nonFraction name="us-gaap:NetIncomeLoss" contextRef="FY2023" unitRef="USD" decimals="-6" scale="6" sign="-">1,200</ix:nonFraction> million.</p>
</body>
</html>"""


@pytest.fixture
def current_report_html() -> str:
    return CURRENT_REPORT_HTML


@pytest.fixture
def form4_html() -> str:
    return FORM4_HTML


@pytest.fixture
def annual_report_html() -> str:
    return ANNUAL_REPORT_HTML


@pytest.fixture
def xbrl_instance() -> str:
    return XBRL_INSTANCE


@pytest.fixture
def inline_xbrl() -> str:
    return INLINE_XBRL


@pytest.fixture
def isolated_registry(monkeypatch):
    """Registry copy whose registrations are dropped after the test."""
    monkeypatch.setattr(FilingTypeRegistry, "_configs", dict(FilingTypeRegistry._configs))
    return FilingTypeRegistry
