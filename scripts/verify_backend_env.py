# scripts/verify_backend_env.py
import importlib, sys, json
mods = [
  "numpy","pandas","statsmodels",
  "sklearn","matplotlib","openpyxl",
  "core.errors","preprocessing","models.registry",
  "diagnostics","price_stat_pipeline",
]
results = {}
for m in mods:
  try:
    mod = importlib.import_module(m)
    results[m] = f"OK {getattr(mod, '__version__', '')}".strip()
  except Exception as e:
    results[m] = f"ERROR: {e.__class__.__name__}: {e}"
print(json.dumps(results, indent=2))
if any(v.startswith("ERROR") for v in results.values()):
  sys.exit(1)
