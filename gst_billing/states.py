from __future__ import annotations

from typing import Final

# First two digits of a GSTIN identify the registering state.
GST_STATE_CODES: Final[dict[str, str]] = {
    "01": "Jammu and Kashmir",
    "02": "Himachal Pradesh",
    "03": "Punjab",
    "04": "Chandigarh",
    "05": "Uttarakhand",
    "06": "Haryana",
    "07": "Delhi",
    "08": "Rajasthan",
    "09": "Uttar Pradesh",
    "10": "Bihar",
    "11": "Sikkim",
    "12": "Arunachal Pradesh",
    "13": "Nagaland",
    "14": "Manipur",
    "15": "Mizoram",
    "16": "Tripura",
    "17": "Meghalaya",
    "18": "Assam",
    "19": "West Bengal",
    "20": "Jharkhand",
    "21": "Odisha",
    "22": "Chhattisgarh",
    "23": "Madhya Pradesh",
    "24": "Gujarat",
    "25": "Daman and Diu",
    "26": "Dadra and Nagar Haveli",
    "27": "Maharashtra",
    "28": "Andhra Pradesh",
    "29": "Karnataka",
    "30": "Goa",
    "31": "Lakshadweep",
    "32": "Kerala",
    "33": "Tamil Nadu",
    "34": "Puducherry",
    "35": "Andaman and Nicobar Islands",
    "36": "Telangana",
    "37": "Andhra Pradesh",
    "38": "Ladakh",
}


def extract_state_code(state: str | None) -> str:
    """Return the leading code of an ``NN-StateName`` string.

    Strings without a ``-`` separator are treated as the code itself.
    """
    if state is None:
        return ""
    text = str(state).strip()
    if "-" not in text:
        return text
    return text.split("-", 1)[0].strip()


def state_name(code: str) -> str | None:
    return GST_STATE_CODES.get(extract_state_code(code).zfill(2))


def format_state(code: str) -> str:
    normalized = extract_state_code(code).zfill(2)
    name = GST_STATE_CODES.get(normalized)
    if name is None:
        raise ValueError(f"Unknown GST state code: {code}")
    return f"{normalized}-{name}"
