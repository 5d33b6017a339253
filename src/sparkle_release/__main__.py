from sparkle_release.app_logic import main

if __name__ == "__main__":
    main()
