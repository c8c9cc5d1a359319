"""Manual smoke run against a live server (uvicorn src.main:app --port 8000).

Expects ADMIN_PASSWORD to be set for the server so the bootstrap admin exists:
    ADMIN_PASSWORD=Admin1234 python run_api_tests.py
"""

import json
import os
import urllib.error
import urllib.request
import uuid

BASE = os.environ.get("TM_BASE_URL", "http://localhost:8000/api/v1")
ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "")


def call(method, path, body=None, token=None, params=None):
    url = f"{BASE}{path}"
    if params:
        url += "?" + "&".join(f"{k}={v}" for k, v in params.items())
    data = json.dumps(body).encode() if body is not None else None
    req = urllib.request.Request(url, data=data, method=method)
    req.add_header("Content-Type", "application/json")
    if token:
        req.add_header("Authorization", f"Bearer {token}")
    try:
        with urllib.request.urlopen(req) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        return json.loads(e.read())


def post(path, body=None, token=None):
    return call("POST", path, body if body is not None else {}, token)


def put(path, body, token=None):
    return call("PUT", path, body, token)


def get(path, token=None, params=None):
    return call("GET", path, token=token, params=params)


def section(title):
    print(f"\n{'='*60}")
    print(f"### {title} ###")
    print('='*60)


def label(name):
    print(f"\n--- {name} ---")


def out(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))


# ── Setup ──────────────────────────────────────────────────────
section("SETUP")

suffix = uuid.uuid4().hex[:6]
username = f"grabber_{suffix}"

label("Register user")
out(post("/auth/register", {
    "username": username, "email": f"{username}@test.com", "password": "Test1234!",
}))

label("Login user")
r = post("/auth/login", {"username": username, "password": "Test1234!"})
out(r)
TU = r.get("data", {}).get("access_token", "")
USER_ID = r.get("data", {}).get("user", {}).get("user_id", "")

label("Login admin")
r = post("/auth/login", {"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
TA = r.get("data", {}).get("access_token", "")
print("admin token acquired" if TA else "admin login failed: admin steps will 401")

# ── T1 Match preconditions ────────────────────────────────────
section("T1: MATCH PRECONDITIONS")

label("T1-1: Match with zero balance (INSUFFICIENT_BALANCE)")
out(post("/tasks/match", token=TU))

label("T1-2: Deposit 1000.00")
out(post("/account/deposit", {"amount_cents": 100000}, token=TU))

label("T1-3: Retired /tasks/start (410 USE_MATCH_CONFIRM)")
out(post("/tasks/start", token=TU))

# ── T2 Match → confirm ─────────────────────────────────────────
section("T2: MATCH / CONFIRM")

label("T2-1: Match")
r = post("/tasks/match", token=TU)
out(r)
TOKEN = r.get("data", {}).get("match_token", "")
ORDER_ID = r.get("data", {}).get("order_id", "")

label("T2-2: Match again while pending (PENDING_ORDER)")
out(post("/tasks/match", token=TU))

label("T2-3: Confirm")
out(post("/tasks/confirm", {"match_token": TOKEN}, token=TU))

label("T2-4: Confirm same token again (INVALID_OR_EXPIRED_TOKEN)")
out(post("/tasks/confirm", {"match_token": TOKEN}, token=TU))

label("T2-5: Submit completed order (ALREADY_PROCESSED)")
out(post("/tasks/submit", {"order_id": ORDER_ID}, token=TU))

# ── T3 Match → submit ──────────────────────────────────────────
section("T3: MATCH / SUBMIT")

r = post("/tasks/match", token=TU)
out(r)
label("T3-1: Submit by order id")
out(post("/tasks/submit", {"order_id": r.get("data", {}).get("order_id", "")}, token=TU))

label("T3-2: My orders")
out(get("/tasks/my-orders", token=TU, params={"limit": 5}))

label("T3-3: Ledger")
out(get("/account/ledger", token=TU))

# ── T4 Admin ───────────────────────────────────────────────────
section("T4: ADMIN")

label("T4-1: Non-admin hits admin route (ADMIN_REQUIRED)")
out(get("/admin/tiers", token=TU))

label("T4-2: List tiers")
out(get("/admin/tiers", token=TA))

label("T4-3: Dispatch override at position 3, range 200-500")
out(put(f"/admin/accounts/{USER_ID}/dispatch-overrides", {
    "position": 3, "min_amount_cents": 20000, "max_amount_cents": 50000,
}, token=TA))

label("T4-4: Third match (expect origin DISPATCH)")
r = post("/tasks/match", token=TU)
out(r)
out(post("/tasks/confirm", {"match_token": r.get("data", {}).get("match_token", "")}, token=TU))

label("T4-5: Dispatch overrides after settlement (expect USED)")
out(get(f"/admin/accounts/{USER_ID}/dispatch-overrides", token=TA))

label("T4-6: Adjust balance (credit 50.00)")
out(post("/admin/adjust-balance", {
    "user_id": USER_ID, "direction": "CREDIT", "amount_cents": 5000, "reason": "smoke test",
}, token=TA))

label("T4-7: Set tier automatically")
out(put(f"/admin/accounts/{USER_ID}/tier", {"auto": True}, token=TA))

label("T4-8: Toggle grab, then match (GRAB_DISABLED)")
out(post(f"/admin/accounts/{USER_ID}/toggle-grab", token=TA))
out(post("/tasks/match", token=TU))
out(post(f"/admin/accounts/{USER_ID}/toggle-grab", token=TA))

label("T4-9: Reset progress")
out(post(f"/admin/accounts/{USER_ID}/reset-progress", token=TA))

label("T4-10: System params")
out(get("/admin/system-params", token=TA))

label("T4-11: Final balance")
out(get("/account/balance", token=TU))
