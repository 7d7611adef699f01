from dotnet_template.main import main

raise SystemExit(main())
