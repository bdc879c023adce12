"""Backend payloads and request helpers shared by the tests"""

from typing import Any, Dict, List


def sample_fields() -> List[Dict[str, Any]]:
    """Registration form used by the sample event, in backend wire shape"""
    return [
        {
            "id": "1700000000001",
            "type": "text",
            "label": "Full Name",
            "placeholder": "Your name",
            "required": True,
            "options": [],
        },
        {
            "id": "1700000000002",
            "type": "email",
            "label": "Email",
            "placeholder": "",
            "required": True,
            "options": [],
        },
        {
            "id": "1700000000003",
            "type": "select",
            "label": "T-shirt size",
            "placeholder": "",
            "required": False,
            "options": ["S", "M", "L"],
        },
        {
            "id": "1700000000004",
            "type": "checkbox",
            "label": "Consent",
            "placeholder": "I agree to be photographed",
            "required": True,
            "options": [],
        },
    ]


def csrf_headers(test_client) -> Dict[str, str]:
    """Header carrying the CSRF cookie value, needed once a session exists"""
    return {"X-CSRFToken": test_client.cookies.get("csrftoken")}
