# frontend/streamlit_app.py
import streamlit as st
import requests
import pandas as pd

API_BASE = st.secrets.get("api_base", "http://localhost:8000") + "/api"

LEVEL_ICON = {"info": "ℹ️", "warn": "⚠️", "danger": "⛔"}

st.set_page_config(page_title="SmartPharmacy Assistant", layout="wide")
st.title("SmartPharmacy Assistant")


def split_list(text):
    return [x.strip() for x in (text or "").split(",") if x.strip()]


def api_error(r):
    try:
        return r.json()["error"]["message"]
    except Exception:
        return r.text


# Sidebar patient profile
with st.sidebar:
    st.header("Patient profile")
    age = st.number_input("Age (years)", 0, 120, 30)
    sex = st.selectbox("Sex", ["", "male", "female", "other"])
    weight = st.number_input("Weight (kg)", 1.0, 400.0, 70.0)
    allergies = st.text_input("Allergies (comma separated)")
    conditions = st.text_input("Conditions (comma separated)", help="e.g. hypertension, kidney, ulcer")
    current_meds = st.text_input("Current medicines (comma separated)")

    context = {
        "age": int(age),
        "weightKg": float(weight),
        "allergies": split_list(allergies),
        "conditions": split_list(conditions),
        "currentMeds": split_list(current_meds),
    }
    if sex:
        context["sex"] = sex

tab_search, tab_rx, tab_order, tab_chat = st.tabs(["Search", "Check prescription", "Reserve", "Ask a pharmacist"])

with tab_search:
    q = st.text_input("Medicine or active ingredient")
    if st.button("Search") and q.strip():
        try:
            r = requests.get(f"{API_BASE}/search", params={"q": q}, timeout=15)
            if r.status_code != 200:
                st.error("Search failed: " + api_error(r))
            elif not r.json():
                st.info("No matches.")
            else:
                for d in r.json():
                    price = f"{d['avg_price']:g} EGP" if d.get("avg_price") is not None else "price n/a"
                    st.markdown(f"**{d['trade_name']}** - {d['active_ingredient']} ({d.get('form') or ''}, {price})")
                    if d.get("alternatives"):
                        st.caption("Alternatives: " + ", ".join(a["trade_name"] for a in d["alternatives"]))
                    if d.get("available_locations"):
                        st.caption("Available at: " + ", ".join(l["name"] for l in d["available_locations"]))
        except Exception as e:
            st.error("Could not contact backend: " + str(e))

with tab_rx:
    st.subheader("Prescription")
    uploaded = st.file_uploader("Upload prescription image (png/jpg)", type=["png", "jpg", "jpeg"])
    if uploaded and st.button("Read image"):
        try:
            files = {"image": ("prescription", uploaded.getvalue(), uploaded.type)}
            r = requests.post(f"{API_BASE}/ocr", files=files, timeout=60)
            if r.status_code == 200:
                st.session_state["rx_text"] = ", ".join(r.json())
                if not r.json():
                    st.warning("No medicine names could be read. Type them instead.")
            else:
                st.error("OCR failed: " + api_error(r))
        except Exception as e:
            st.error("Could not contact backend: " + str(e))

    rx_text = st.text_area("Medicines (comma separated)", value=st.session_state.get("rx_text", ""), height=80)

    if st.button("Check"):
        payload = {"meds": split_list(rx_text)[:12], "context": context}
        try:
            r = requests.post(f"{API_BASE}/prescription/validate", json=payload, timeout=30)
            if r.status_code != 200:
                st.error("Check failed: " + api_error(r))
            else:
                st.session_state["last_validation"] = r.json()
        except Exception as e:
            st.error("Failed to call /prescription/validate: " + str(e))

    out = st.session_state.get("last_validation")
    if out:
        rows = [{
            "input": it["input"],
            "trade_name": (it.get("match") or {}).get("trade_name"),
            "active_ingredient": (it.get("match") or {}).get("active_ingredient"),
            "avg_price": (it.get("match") or {}).get("avg_price"),
        } for it in out["items"]]
        st.dataframe(pd.DataFrame(rows), use_container_width=True)

        st.markdown("**Warnings**")
        if out["flags"]:
            for f in out["flags"]:
                st.markdown(f"{LEVEL_ICON.get(f['level'], '')} **{f['title']}**: {f['message']}  \n"
                            f"_{', '.join(f.get('related') or [])}_")
        else:
            st.success("✅ No warnings.")

        st.markdown("**Interactions**")
        if out["interactions"]:
            for h in out["interactions"]:
                st.markdown(f"- {h['a']['trade_name']} + {h['b']['trade_name']} ({h['severity']}): {h['summary']}")
        else:
            st.success("✅ No interactions detected.")

        st.markdown("**Alternatives**")
        for trade, alts in out["alternatives"].items():
            if alts:
                st.markdown(f"- {trade}: " + ", ".join(
                    f"{a['trade_name']}" + (f" ({a['avg_price']:g})" if a.get("avg_price") is not None else "")
                    for a in alts))

with tab_order:
    try:
        pharmacies = requests.get(f"{API_BASE}/pharmacies", timeout=10).json().get("pharmacies", [])
    except Exception:
        pharmacies = []
    if not pharmacies:
        st.info("Pharmacy list unavailable.")
    else:
        names = {p["name"]: p["id"] for p in pharmacies}
        pharmacy = st.selectbox("Pharmacy", list(names))
        cart = st.data_editor(
            st.session_state.get("cart_df", pd.DataFrame([{"trade_name": "", "qty": 1}])),
            num_rows="dynamic",
            key="cart_editor",
        )
        if st.button("Reserve"):
            items = [{"trade_name": str(r["trade_name"]).strip(), "qty": int(r["qty"]) if pd.notna(r.get("qty")) else 1}
                     for r in cart.to_dict(orient="records") if str(r.get("trade_name") or "").strip()]
            try:
                r = requests.post(f"{API_BASE}/orders/reserve",
                                  json={"pharmacy_id": names[pharmacy], "items": items, "context": context},
                                  timeout=30)
                if r.status_code != 200:
                    st.error("Reservation failed: " + api_error(r))
                else:
                    order = r.json()
                    st.success(f"Reserved. Your code: **{order['order_code']}** (total {order['total']} EGP)")
                    st.dataframe(pd.DataFrame(order["items"]), use_container_width=True)
            except Exception as e:
                st.error("Failed to call /orders/reserve: " + str(e))

    st.markdown("---")
    code = st.text_input("Look up an order code")
    if st.button("Find order") and code.strip():
        r = requests.get(f"{API_BASE}/orders/{code.strip()}", timeout=10)
        if r.status_code == 200:
            st.json(r.json())
        else:
            st.error(api_error(r))

with tab_chat:
    message = st.text_area("Your question", height=100)
    if st.button("Ask") and message.strip():
        try:
            r = requests.post(f"{API_BASE}/chat", json={"message": message, "context": context}, timeout=30)
            if r.status_code == 200:
                st.write(r.json()["reply"])
            else:
                st.error("Chat failed: " + api_error(r))
        except Exception as e:
            st.error("Could not contact backend: " + str(e))
