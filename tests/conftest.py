import copy
import json

import pytest

SAMPLE_ANALYSIS = {
    "videoTitle": "Never Gonna Give You Up",
    "bluf": "A commitment song that promises loyalty without exception.",
    "tldr": ["Promises never to give up", "Promises never to let down"],
    "executiveSummary": {
        "overview": "A pop song about **unwavering** commitment.",
        "sections": [
            {"title": "Opening", "content": "The singer states his intentions."},
            {"title": "Chorus", "content": "A list of things he will never do."},
        ],
    },
    "keyQuotes": [
        {"quote": "Never gonna give you up", "context": "Chorus opener"},
        {"quote": "Never gonna let you down", "context": "Chorus, second line"},
        {"quote": "We're no strangers to love", "context": "First verse"},
    ],
    "qualityScore": {
        "informational": 2,
        "salesly": 1,
        "analysis": "Entertainment with little informational value.",
    },
}


@pytest.fixture
def sample_analysis():
    return copy.deepcopy(SAMPLE_ANALYSIS)


@pytest.fixture
def sample_completion(sample_analysis):
    return json.dumps(sample_analysis)
