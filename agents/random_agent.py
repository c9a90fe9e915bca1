"""Random agent that steers one Nationsim nation via the API."""
import random
import httpx

RESOURCES = ["food", "minerals", "technology"]
ACTION_TYPES = ["TERRITORY", "BATTLE", "RAID"]


def play_turn(client: httpx.Client, world_id: str, nation_id: str,
              rng: random.Random) -> dict:
    """Read the world state, issue a few random commands for one nation."""
    resp = client.get(f"/worlds/{world_id}/state")
    if resp.status_code != 200:
        return {"error": resp.text}
    state = resp.json()

    me = next((n for n in state["nations"] if n["id"] == nation_id), None)
    if me is None:
        return {"error": f"nation {nation_id} not in world"}
    others = [n["id"] for n in state["nations"] if n["id"] != nation_id]
    actions = []

    # Answer proposals addressed to us
    for action in state.get("pending_actions", []):
        if action["to"] != nation_id:
            continue
        verb = "accept" if rng.random() < 0.5 else "reject"
        r = client.post(f"/worlds/{world_id}/diplomacy/proposals/{action['id']}/{verb}",
                        json={"nation_id": nation_id})
        actions.append({"kind": verb, "id": action["id"], "status": r.status_code})

    if not others:
        return {"nation": nation_id, "actions": actions}
    target = rng.choice(others)

    # Fight the wars we're in
    if me["at_war"] and rng.random() < 0.5:
        enemy = rng.choice(me["war_with"])
        r = client.post(f"/worlds/{world_id}/wars/actions", json={
            "attacker": nation_id, "defender": enemy,
            "type": rng.choice(ACTION_TYPES), "commitment": round(rng.uniform(0.3, 0.7), 2),
        })
        actions.append({"kind": "attack", "target": enemy, "status": r.status_code})
        if me["resources"]["gold"] < 100 and rng.random() < 0.5:
            r = client.post(f"/worlds/{world_id}/diplomacy/proposals", json={
                "sender": nation_id, "recipient": enemy, "type": "PEACE_TREATY",
            })
            actions.append({"kind": "propose_peace", "target": enemy, "status": r.status_code})

    roll = rng.random()
    if roll < 0.3:
        r = client.post(f"/worlds/{world_id}/diplomacy/proposals", json={
            "sender": nation_id, "recipient": target, "type": "TRADE_AGREEMENT",
            "terms": {"resource": rng.choice(RESOURCES), "amount": rng.randint(1, 10)},
        })
        actions.append({"kind": "propose_trade", "target": target, "status": r.status_code})
    elif roll < 0.45:
        r = client.post(f"/worlds/{world_id}/diplomacy/proposals", json={
            "sender": nation_id, "recipient": target, "type": "ALLIANCE",
        })
        actions.append({"kind": "propose_alliance", "target": target, "status": r.status_code})
    elif roll < 0.5 and not me["at_war"] and target not in me["allies"]:
        r = client.post(f"/worlds/{world_id}/wars", json={"attacker": nation_id, "defender": target})
        actions.append({"kind": "declare_war", "target": target, "status": r.status_code})

    return {"nation": nation_id, "actions": actions}
