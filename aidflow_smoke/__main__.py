from aidflow_smoke.runner import main

main()
