"""Sample coverage payloads shared by the coverage tests.

One small but complete report per format. The numbers are chosen so the
expected counters can be worked out by hand from the payload.
"""

import json

import pytest

CLOVER_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<coverage generated="1700000000" clover="3.2.0">
  <project timestamp="1700000000" name="All files">
    <metrics statements="4" coveredstatements="3" conditionals="2" coveredconditionals="1"
             methods="1" coveredmethods="1"/>
    <file name="math.js" path="/repo/src/math.js">
      <metrics statements="4" coveredstatements="3" conditionals="2" coveredconditionals="1"
               methods="1" coveredmethods="1"/>
      <line num="1" count="1" type="method" name="add"/>
      <line num="2" count="1" type="stmt"/>
      <line num="3" count="1" type="cond" truecount="1" falsecount="0"/>
      <line num="4" count="0" type="stmt"/>
    </file>
  </project>
</coverage>
"""

COBERTURA_XML = """\
<?xml version="1.0" ?>
<coverage line-rate="0.75" branch-rate="0.5" timestamp="1700000000123" version="7.4">
  <packages>
    <package name="app">
      <classes>
        <class name="util.py" filename="app/util.py" line-rate="0.75">
          <methods>
            <method name="helper" signature="()">
              <lines><line number="2" hits="1"/></lines>
            </method>
            <method name="unused" signature="()">
              <lines><line number="5" hits="0"/></lines>
            </method>
          </methods>
          <lines>
            <line number="1" hits="1"/>
            <line number="2" hits="1"/>
            <line number="3" hits="1" branch="true" condition-coverage="50% (1/2)"/>
            <line number="5" hits="0"/>
          </lines>
        </class>
      </classes>
    </package>
  </packages>
</coverage>
"""

JACOCO_XML = """\
<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<report name="demo">
  <sessioninfo id="host-1" start="1700000000000" dump="1700000001000"/>
  <package name="com/example">
    <class name="com/example/Calc" sourcefilename="Calc.java"/>
    <sourcefile name="Calc.java">
      <line nr="3" mi="0" ci="3" mb="0" cb="0"/>
      <line nr="5" mi="0" ci="2" mb="1" cb="1"/>
      <line nr="7" mi="4" ci="0" mb="0" cb="0"/>
      <counter type="LINE" missed="1" covered="2"/>
      <counter type="BRANCH" missed="1" covered="1"/>
      <counter type="METHOD" missed="0" covered="2"/>
    </sourcefile>
  </package>
  <counter type="LINE" missed="1" covered="2"/>
  <counter type="BRANCH" missed="1" covered="1"/>
  <counter type="METHOD" missed="0" covered="2"/>
</report>
"""

LCOV_INFO = """\
TN:
SF:src/a.js
FN:1,alpha
FNDA:3,alpha
FN:5,beta
FNDA:0,beta
FNF:2
FNH:1
DA:1,3
DA:2,3
DA:3,0
DA:5,0
BRDA:2,0,0,1
BRDA:2,0,1,0
BRDA:3,0,0,-
BRDA:3,0,1,-
BRF:4
BRH:1
LF:4
LH:2
end_of_record
"""

ISTANBUL = {
    "/repo/src/util.js": {
        "path": "/repo/src/util.js",
        "statementMap": {
            "0": {"start": {"line": 1, "column": 0}, "end": {"line": 1, "column": 20}},
            "1": {"start": {"line": 2, "column": 2}, "end": {"line": 2, "column": 10}},
            "2": {"start": {"line": 2, "column": 12}, "end": {"line": 2, "column": 30}},
            "3": {"start": {"line": 4, "column": 2}, "end": {"line": 4, "column": 12}},
        },
        "fnMap": {
            "0": {
                "name": "util",
                "decl": {"start": {"line": 1, "column": 9}, "end": {"line": 1, "column": 13}},
                "loc": {"start": {"line": 1, "column": 0}, "end": {"line": 5, "column": 1}},
                "line": 1,
            },
            "1": {
                "name": "unused",
                "decl": {"start": {"line": 6, "column": 9}, "end": {"line": 6, "column": 15}},
                "loc": {"start": {"line": 6, "column": 0}, "end": {"line": 8, "column": 1}},
                "line": 6,
            },
        },
        "branchMap": {
            "0": {
                "loc": {"start": {"line": 2, "column": 2}, "end": {"line": 2, "column": 30}},
                "type": "if",
                "locations": [
                    {"start": {"line": 2, "column": 2}, "end": {"line": 2, "column": 10}},
                    {"start": {"line": 2, "column": 12}, "end": {"line": 2, "column": 30}},
                ],
                "line": 2,
            }
        },
        "s": {"0": 1, "1": 1, "2": 0, "3": 0},
        "f": {"0": 1, "1": 0},
        "b": {"0": [1, 0]},
    }
}

GO_PROFILE = """\
mode: set
a.go:1.1,5.2 1 1
a.go:3.1,7.2 1 0
"""

CODECOV = {
    "coverage": {
        "src/lib.rs": {"1": 5, "2": "1/2", "3": 0, "4": "0/3", "5": None, "6": "3/3"},
    }
}


@pytest.fixture
def clover_xml() -> str:
    return CLOVER_XML


@pytest.fixture
def cobertura_xml() -> str:
    return COBERTURA_XML


@pytest.fixture
def jacoco_xml() -> str:
    return JACOCO_XML


@pytest.fixture
def lcov_info() -> str:
    return LCOV_INFO


@pytest.fixture
def istanbul_json() -> str:
    return json.dumps(ISTANBUL)


@pytest.fixture
def go_profile() -> str:
    return GO_PROFILE


@pytest.fixture
def codecov_json() -> str:
    return json.dumps(CODECOV)


@pytest.fixture
def samples(
    clover_xml: str,
    cobertura_xml: str,
    jacoco_xml: str,
    lcov_info: str,
    istanbul_json: str,
    go_profile: str,
    codecov_json: str,
) -> dict[str, str]:
    """Every sample payload keyed by the format id that should claim it."""
    return {
        "clover": clover_xml,
        "cobertura": cobertura_xml,
        "jacoco": jacoco_xml,
        "lcov": lcov_info,
        "istanbul": istanbul_json,
        "go": go_profile,
        "codecov": codecov_json,
    }
