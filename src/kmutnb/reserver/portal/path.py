class Path:
    """URL constants for the KMUTNB software portal.

    Contains the base hostname and the endpoints used for login and the
    Adobe license reservation.
    """

    HOSTNAME = "https://software.kmutnb.ac.th"
    LOGIN = f"{HOSTNAME}/login/"
    ADOBE_PROCESS = f"{HOSTNAME}/adobe-reserve/processa.php"
    ADOBE_ADD = "https://software.kmutnb.ac.th:443/adobe-reserve/add2.php"
