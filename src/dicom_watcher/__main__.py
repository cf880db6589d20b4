from dicom_watcher.cli import main


raise SystemExit(main())
