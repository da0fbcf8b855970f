from fahrplan.app import main

raise SystemExit(main())
