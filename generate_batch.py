"""Generate a batch of thumbnails via the backend API."""
import requests

API = "http://localhost:8000/api"

prompts = [
    {"prompt": "Shocked gamer in front of a glowing monitor", "model": "flux"},
    {"prompt": "Mountain bike mid-jump over a canyon at sunset", "model": "flux"},
    {"prompt": "Chef holding a giant burger, studio lighting", "model": "stable-diffusion"},
    {"prompt": "Samurai cat standing on a rooftop at night", "model": "ideogram"},
    {"prompt": "Rocket launching through storm clouds", "model": "stable-diffusion"},
]

print(f"🎨 Generating {len(prompts)} thumbnails...\n")

for i, p in enumerate(prompts, 1):
    print(f"[{i}/{len(prompts)}] Generating: {p['prompt']} ({p['model']})...")
    try:
        resp = requests.post(f"{API}/replicate/generate-image", json=p, timeout=300)
        if resp.ok:
            data = resp.json()
            print(f"  ✅ Created: {data['image']['id']} ({data['url']})")
        else:
            print(f"  ❌ Failed: {resp.status_code} - {resp.text[:200]}")
    except requests.RequestException as e:
        print(f"  ❌ Error: {e}")

print("\n🎉 Done! Check /api/images for the history.")
