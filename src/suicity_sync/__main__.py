from suicity_sync.main import main

if __name__ == "__main__":
    main()
